"""Rate ledger: which hourly rate was in effect on a given day.

The effective rate on day D is the rate of the entry with the latest
``valid_from <= D``. When two entries share the same ``valid_from`` the one
with the higher ``rate_id`` (the later insert) wins. No qualifying entry
means "no rate", which prices work at 0.
"""

from __future__ import annotations

from bisect import bisect_right
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import now_local
from .model import Rate


def _ledger_order(rate: Rate) -> tuple[date, int]:
    return rate.valid_from, rate.rate_id


def resolve_rate(ledger: Iterable[Rate], on_date: Optional[date] = None) -> Optional[Decimal]:
    """Rate in effect on ``on_date`` (today when omitted), or None."""
    on_date = on_date or now_local().date()
    best: Optional[Rate] = None
    for rate in ledger:
        if rate.valid_from > on_date:
            continue
        if best is None or _ledger_order(rate) > _ledger_order(best):
            best = rate
    return best.rate if best else None


class RateLedger:
    """Immutable, date-ordered snapshot of one user's rates.

    Built once per request and queried for every priced entry.
    """

    def __init__(self, rates: Iterable[Rate] = ()):
        self._entries: tuple[Rate, ...] = tuple(sorted(rates, key=_ledger_order))
        self._starts: list[date] = [r.valid_from for r in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    @property
    def entries(self) -> Sequence[Rate]:
        """Oldest first."""
        return self._entries

    def history(self) -> list[Rate]:
        """Newest first, the order rate histories are displayed in."""
        return list(reversed(self._entries))

    def rate_on(self, on_date: Optional[date] = None) -> Optional[Decimal]:
        on_date = on_date or now_local().date()
        idx = bisect_right(self._starts, on_date)
        if idx == 0:
            return None
        return self._entries[idx - 1].rate

    def current_rate(self) -> Optional[Decimal]:
        return self.rate_on(None)


def ledgers_by_user(rates: Iterable[Rate]) -> dict[int, RateLedger]:
    """Split a mixed list of rates into one ledger per user."""
    grouped: dict[int, list[Rate]] = {}
    for rate in rates:
        grouped.setdefault(rate.user_id, []).append(rate)
    return {user_id: RateLedger(items) for user_id, items in grouped.items()}
