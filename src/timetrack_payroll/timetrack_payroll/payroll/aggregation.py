"""Aggregation of priced time tracks into totals and buckets.

Every entry is priced with the rate of its own user effective on its own date,
so a rate change in the middle of a bucket only affects entries dated on or
after the change. Earnings are accumulated in full precision; rounding is left
to the presentation helpers at the bottom of this module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Hashable, Iterable, Mapping, Optional, Sequence

from ..common.datetime_utils import month_key, month_start
from ..core.constants import MINUTES_PER_HOUR
from ..core.enums import GroupBy
from ..rates.ledger import RateLedger
from ..timetracks.model import PricedTimeTrack, TimeTrack
from .calculator.base import EarningsCalculator, LedgerLike, as_ledger
from .calculator.hourly_calculator import HourlyRateCalculator

ZERO = Decimal(0)


@dataclass(frozen=True)
class Totals:
    """Sums over a set of priced time tracks."""

    total_minutes: int = 0
    paid_minutes: int = 0
    unpaid_minutes: int = 0
    total_tracks: int = 0
    paid_tracks: int = 0
    total_earnings: Decimal = ZERO
    paid_earnings: Decimal = ZERO
    unpaid_earnings: Decimal = ZERO
    days: frozenset = field(default_factory=frozenset)

    @property
    def unpaid_tracks(self) -> int:
        return self.total_tracks - self.paid_tracks

    @property
    def unique_days(self) -> int:
        return len(self.days)

    @property
    def total_hours(self) -> Decimal:
        return Decimal(self.total_minutes) / MINUTES_PER_HOUR

    @property
    def is_active(self) -> bool:
        return self.total_minutes > 0 or self.total_earnings > 0

    def to_dict(self) -> dict:
        return {
            "totalMinutes": self.total_minutes,
            "totalHours": self.total_minutes // MINUTES_PER_HOUR,
            "remainingMinutes": self.total_minutes % MINUTES_PER_HOUR,
            "paidMinutes": self.paid_minutes,
            "unpaidMinutes": self.unpaid_minutes,
            "totalTracks": self.total_tracks,
            "paidTracks": self.paid_tracks,
            "uniqueDays": self.unique_days,
            "totalEarnings": round_money(self.total_earnings),
            "paidEarnings": round_money(self.paid_earnings),
            "unpaidEarnings": round_money(self.unpaid_earnings),
        }


class _Accumulator:
    __slots__ = (
        "total_minutes",
        "paid_minutes",
        "unpaid_minutes",
        "total_tracks",
        "paid_tracks",
        "total_earnings",
        "paid_earnings",
        "unpaid_earnings",
        "days",
    )

    def __init__(self) -> None:
        self.total_minutes = 0
        self.paid_minutes = 0
        self.unpaid_minutes = 0
        self.total_tracks = 0
        self.paid_tracks = 0
        self.total_earnings = ZERO
        self.paid_earnings = ZERO
        self.unpaid_earnings = ZERO
        self.days: set[date] = set()

    def add(self, priced: PricedTimeTrack) -> None:
        track = priced.track
        self.total_minutes += track.time
        self.total_tracks += 1
        self.total_earnings += priced.earnings
        self.days.add(track.date)
        if track.was_paid:
            self.paid_minutes += track.time
            self.paid_tracks += 1
            self.paid_earnings += priced.earnings
        else:
            self.unpaid_minutes += track.time
            self.unpaid_earnings += priced.earnings

    def freeze(self) -> Totals:
        return Totals(
            total_minutes=self.total_minutes,
            paid_minutes=self.paid_minutes,
            unpaid_minutes=self.unpaid_minutes,
            total_tracks=self.total_tracks,
            paid_tracks=self.paid_tracks,
            total_earnings=self.total_earnings,
            paid_earnings=self.paid_earnings,
            unpaid_earnings=self.unpaid_earnings,
            days=frozenset(self.days),
        )


@dataclass(frozen=True)
class UserSummary:
    user_id: int
    totals: Totals
    buckets: Mapping[Hashable, Totals]
    entries: tuple[PricedTimeTrack, ...] = ()


@dataclass(frozen=True)
class Summary:
    """Result of :func:`aggregate`.

    ``buckets`` is the roll-up across all users keyed by the grouping key
    (a ``date`` for DAY, the first day of the month for MONTH, a user id for
    USER; empty for NONE). ``users`` holds the same figures per user.
    """

    group_by: GroupBy
    totals: Totals
    buckets: Mapping[Hashable, Totals]
    users: Mapping[int, UserSummary]

    def bucket(self, key: Hashable) -> Totals:
        return self.buckets.get(key, Totals())

    @property
    def entries(self) -> list[PricedTimeTrack]:
        out: list[PricedTimeTrack] = []
        for user in self.users.values():
            out.extend(user.entries)
        return out


def bucket_key(group_by: GroupBy, track: TimeTrack) -> Hashable:
    if group_by == GroupBy.DAY:
        return track.date
    if group_by == GroupBy.MONTH:
        return month_start(track.date)
    if group_by == GroupBy.USER:
        return track.user_id
    return None


def aggregate(
    entries: Iterable[TimeTrack],
    ledgers_by_user: Mapping[int, LedgerLike],
    group_by: GroupBy = GroupBy.NONE,
    *,
    calculator: Optional[EarningsCalculator] = None,
) -> Summary:
    """Price and sum time tracks of one or many users.

    Entries are grouped by user first; each group is priced against that
    user's own ledger (a user without a ledger prices at 0), then rolled up
    into cohort totals keyed by bucket.
    """
    calculator = calculator or HourlyRateCalculator()
    group_by = GroupBy(group_by)
    ledgers = {int(uid): as_ledger(ledger) for uid, ledger in ledgers_by_user.items()}
    empty = RateLedger()

    by_user: dict[int, list[TimeTrack]] = {}
    for entry in entries:
        by_user.setdefault(entry.user_id, []).append(entry)

    overall = _Accumulator()
    combined: dict[Hashable, _Accumulator] = {}
    users: dict[int, UserSummary] = {}

    for user_id in sorted(by_user):
        ledger = ledgers.get(user_id, empty)
        user_total = _Accumulator()
        user_buckets: dict[Hashable, _Accumulator] = {}
        priced_entries: list[PricedTimeTrack] = []

        for entry in by_user[user_id]:
            priced = calculator.price(entry, ledger)
            priced_entries.append(priced)
            user_total.add(priced)
            overall.add(priced)
            if group_by != GroupBy.NONE:
                key = bucket_key(group_by, entry)
                user_buckets.setdefault(key, _Accumulator()).add(priced)
                combined.setdefault(key, _Accumulator()).add(priced)

        users[user_id] = UserSummary(
            user_id=user_id,
            totals=user_total.freeze(),
            buckets=_freeze_sorted(user_buckets),
            entries=tuple(priced_entries),
        )

    return Summary(
        group_by=group_by,
        totals=overall.freeze(),
        buckets=_freeze_sorted(combined),
        users=users,
    )


def _freeze_sorted(buckets: Mapping[Hashable, _Accumulator]) -> dict[Hashable, Totals]:
    return {key: buckets[key].freeze() for key in sorted(buckets)}


@dataclass(frozen=True)
class MonthBucket:
    month: date
    totals: Totals
    users: Mapping[int, Totals]

    @property
    def key(self) -> str:
        return month_key(self.month)


def monthly_series(summary: Summary, months: Sequence[date]) -> list[MonthBucket]:
    """Month buckets for exactly ``months`` (zero-filled), in the given order."""
    if summary.group_by != GroupBy.MONTH:
        raise ValueError("monthly_series needs a summary grouped by month")
    out: list[MonthBucket] = []
    for month in months:
        first = month_start(month)
        per_user = {
            uid: u.buckets[first] for uid, u in summary.users.items() if first in u.buckets
        }
        out.append(MonthBucket(month=first, totals=summary.bucket(first), users=per_user))
    return out


@dataclass(frozen=True)
class SeriesStatistics:
    """Derived figures over a series of buckets.

    Averages only count active buckets; maxima consider every bucket.
    """

    buckets: int
    active_buckets: int
    total_earnings: Decimal
    average_earnings: Decimal
    max_earnings: Decimal
    total_minutes: int
    average_minutes: Decimal
    max_minutes: int

    def to_dict(self) -> dict:
        return {
            "months": self.buckets,
            "activeMonths": self.active_buckets,
            "totalEarnings": round_money(self.total_earnings),
            "averageEarnings": round_money(self.average_earnings),
            "maxEarnings": round_money(self.max_earnings),
            "totalHours": round_hours(self.total_minutes),
            "averageHours": round_hours(self.average_minutes),
            "maxHours": round_hours(self.max_minutes),
        }


def series_statistics(series: Iterable[Totals]) -> SeriesStatistics:
    items = list(series)
    active = [t for t in items if t.is_active]

    total_earnings = sum((t.total_earnings for t in items), ZERO)
    total_minutes = sum(t.total_minutes for t in items)
    active_earnings = sum((t.total_earnings for t in active), ZERO)
    active_minutes = sum(t.total_minutes for t in active)

    return SeriesStatistics(
        buckets=len(items),
        active_buckets=len(active),
        total_earnings=total_earnings,
        average_earnings=active_earnings / len(active) if active else ZERO,
        max_earnings=max((t.total_earnings for t in items), default=ZERO),
        total_minutes=total_minutes,
        average_minutes=Decimal(active_minutes) / len(active) if active else ZERO,
        max_minutes=max((t.total_minutes for t in items), default=0),
    )


def round_money(value: Decimal) -> int:
    """Round to the nearest whole currency unit (half away from zero)."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def round_hours(minutes) -> float:
    hours = Decimal(minutes) / MINUTES_PER_HOUR
    return float(hours.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
