from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import TimeTrack


class TimeTrackRepository(Protocol):
    def list_for_users(
        self,
        user_ids: Optional[Sequence[int]] = None,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[TimeTrack]:
        """Entries of the given users (all users when None), newest first.

        ``start_date``/``end_date`` are inclusive.
        """

        raise NotImplementedError

    def get_by_id(self, track_id: int) -> Optional[TimeTrack]:
        raise NotImplementedError

    def count_for_user(self, user_id: int) -> int:
        raise NotImplementedError

    def create(self, *, user_id: int, work_date: date, minutes: int, comment: str) -> TimeTrack:
        raise NotImplementedError

    def update_unpaid(self, *, track_id: int, minutes: int, comment: str) -> Optional[TimeTrack]:
        """Update only while ``was_paid`` is false; None when nothing matched."""

        raise NotImplementedError

    def delete_unpaid(self, track_id: int) -> bool:
        raise NotImplementedError

    def mark_paid(self, track_ids: Sequence[int]) -> int:
        """Flip unpaid entries among ``track_ids`` to paid; returns how many changed."""

        raise NotImplementedError
