from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable, Union

from ...rates.ledger import RateLedger
from ...rates.model import Rate
from ...timetracks.model import PricedTimeTrack, TimeTrack

LedgerLike = Union[RateLedger, Iterable[Rate]]


def as_ledger(ledger: LedgerLike) -> RateLedger:
    return ledger if isinstance(ledger, RateLedger) else RateLedger(ledger)


class EarningsCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def price(self, entry: TimeTrack, ledger: LedgerLike) -> PricedTimeTrack:
        raise NotImplementedError

    def earnings(self, entry: TimeTrack, ledger: LedgerLike) -> Decimal:
        return self.price(entry, ledger).earnings
