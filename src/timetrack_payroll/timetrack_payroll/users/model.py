from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object (no DB access code).
    """

    user_id: int
    login: str
    name: str
    position: str
    role: Role
    password_hash: str = ""
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class Actor:
    """Who performs a request: passed explicitly into every service call."""

    user_id: int
    role: Role

    @classmethod
    def of(cls, user: User) -> "Actor":
        return cls(user_id=user.user_id, role=user.role)
