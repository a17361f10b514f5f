from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class TimeTrack:
    """Domain entity: one recorded unit of work on a calendar day."""

    track_id: int
    user_id: int
    date: date
    time: int
    comment: str
    was_paid: bool = False
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PricedTimeTrack:
    """Read-model: a time track together with the rate effective on its date.

    The persisted entity is never modified; pricing is always recomputed from
    the current rate ledger.
    """

    track: TimeTrack
    rate: Optional[Decimal]
    earnings: Decimal

    @property
    def effective_rate(self) -> Decimal:
        return self.rate if self.rate is not None else Decimal(0)

    def to_dict(self) -> dict:
        t = self.track
        return {
            "id": t.track_id,
            "user_id": t.user_id,
            "date": t.date.isoformat(),
            "time": t.time,
            "comment": t.comment,
            "was_paid": t.was_paid,
            "created_at": t.created_at.isoformat() if t.created_at else None,
            "rate": float(self.effective_rate),
            "earnings": float(self.earnings),
        }
