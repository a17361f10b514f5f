from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for access checks."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class GroupBy(str, Enum):
    """Bucket used when aggregating time tracks."""

    NONE = "none"
    DAY = "day"
    MONTH = "month"
    USER = "user"


class StatsPeriod(str, Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
