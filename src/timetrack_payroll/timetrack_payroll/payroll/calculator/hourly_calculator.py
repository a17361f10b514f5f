from __future__ import annotations

from decimal import Decimal

from ...core.constants import MINUTES_PER_HOUR
from ...timetracks.model import PricedTimeTrack, TimeTrack
from .base import EarningsCalculator, LedgerLike, as_ledger


class HourlyRateCalculator(EarningsCalculator):
    """Standard rule: minutes / 60 * rate effective on the work date.

    The work date is used, never ``created_at`` or today. Missing rate prices at 0.
    No rounding happens here.
    """

    def price(self, entry: TimeTrack, ledger: LedgerLike) -> PricedTimeTrack:
        rate = as_ledger(ledger).rate_on(entry.date)
        if rate is None or rate <= 0:
            return PricedTimeTrack(track=entry, rate=rate, earnings=Decimal(0))
        earnings = Decimal(rate) * int(entry.time) / MINUTES_PER_HOUR
        return PricedTimeTrack(track=entry, rate=rate, earnings=earnings)


def price_entry(entry: TimeTrack, ledger: LedgerLike) -> Decimal:
    return HourlyRateCalculator().earnings(entry, ledger)
