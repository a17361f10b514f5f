from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from .model import Rate


class RateRepository(Protocol):
    def list_for_users(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[Rate]:
        """Rates of the given users (all users when None), newest ``valid_from`` first."""

        raise NotImplementedError

    def get_by_id(self, rate_id: int) -> Optional[Rate]:
        raise NotImplementedError

    def create(self, *, user_id: int, rate: Decimal, valid_from: date) -> Rate:
        raise NotImplementedError

    def update(self, *, rate_id: int, rate: Decimal, valid_from: date) -> Optional[Rate]:
        raise NotImplementedError
