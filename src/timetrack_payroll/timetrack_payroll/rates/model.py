from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class Rate:
    """Hourly rate of one user, in effect from ``valid_from`` (inclusive)."""

    rate_id: int
    user_id: int
    rate: Decimal
    valid_from: date
