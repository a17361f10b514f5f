from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence, Union

from ..access.policy import can_view_all, ensure_can_view
from ..common.datetime_utils import month_end, now_local, parse_iso_date, period_window, trailing_months
from ..core.constants import DEFAULT_TRAILING_MONTHS
from ..core.enums import GroupBy, StatsPeriod
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..rates.repository import RateRepository
from ..rates.ledger import RateLedger, ledgers_by_user
from ..timetracks.repository import TimeTrackRepository
from ..users.model import Actor, User
from ..users.repository import UserRepository
from .aggregation import (
    MonthBucket,
    SeriesStatistics,
    Summary,
    Totals,
    aggregate,
    monthly_series,
    round_hours,
    round_money,
    series_statistics,
)
from .calculator.base import EarningsCalculator
from .calculator.hourly_calculator import HourlyRateCalculator

log = logging.getLogger(__name__)

ALL_USERS = "all"

Scope = Union[None, int, str, Sequence[int]]


@dataclass(frozen=True)
class PeriodStatistics:
    user_id: int
    start: date
    end: date
    totals: Totals
    current_rate: Optional[Decimal]

    def to_dict(self) -> dict:
        return {
            **self.totals.to_dict(),
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
            "userRate": float(self.current_rate) if self.current_rate is not None else 0,
        }


@dataclass(frozen=True)
class MonthlyReport:
    """Trailing month window for a scope, oldest month first."""

    months: list[MonthBucket]
    users: Mapping[int, User]
    ledgers: Mapping[int, RateLedger]
    statistics: SeriesStatistics

    def to_dicts(self) -> list[dict]:
        out = []
        for bucket in self.months:
            users = {}
            for uid, totals in bucket.users.items():
                user = self.users.get(uid)
                current = self.ledgers.get(uid, RateLedger()).current_rate()
                users[str(uid)] = {
                    "name": user.name if user else "",
                    "position": user.position if user else "",
                    "rate": float(current) if current is not None else 0,
                    **totals.to_dict(),
                }
            out.append({"month": bucket.key, **bucket.totals.to_dict(), "users": users})
        return out

    def earnings_dicts(self) -> list[dict]:
        return [
            {
                "month": b.key,
                "earnings": round_money(b.totals.total_earnings),
                "hours": round_hours(b.totals.total_minutes),
            }
            for b in self.months
        ]


class StatisticsService:
    """Query surface: statistics for a scope (one user, several, or all) over a window.

    Everything is pulled fresh and recomputed on every call; nothing is cached.
    """

    def __init__(
        self,
        users: UserRepository,
        rates: RateRepository,
        tracks: TimeTrackRepository,
        *,
        calculator: Optional[EarningsCalculator] = None,
        trailing_months: int = DEFAULT_TRAILING_MONTHS,
    ):
        self._users = users
        self._rates = rates
        self._tracks = tracks
        self._calculator = calculator or HourlyRateCalculator()
        self._trailing_months = int(trailing_months)

    def resolve_scope(self, actor: Actor, scope: Scope) -> dict[int, User]:
        """Users the actor asked for, after access checks."""
        if scope is None or scope == "":
            scope = actor.user_id

        if isinstance(scope, str) and scope.strip().lower() == ALL_USERS:
            if not can_view_all(actor):
                raise AuthorizationError("Forbidden")
            return {u.user_id: u for u in self._users.list_all()}

        if isinstance(scope, (str, int)):
            ids = [scope]
        else:
            ids = list(scope)

        out: dict[int, User] = {}
        for raw in ids:
            try:
                user_id = int(raw)
            except (TypeError, ValueError):
                raise ValidationError("Invalid userId")
            ensure_can_view(actor, user_id)
            user = self._users.get_by_id(user_id)
            if not user:
                raise NotFoundError("User not found")
            out[user_id] = user
        return out

    def summarize(
        self,
        *,
        actor: Actor,
        scope: Scope,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        group_by: GroupBy = GroupBy.NONE,
    ) -> Summary:
        users = self.resolve_scope(actor, scope)
        return self._summarize(list(users), start_date, end_date, group_by)[0]

    def _summarize(
        self,
        user_ids: list[int],
        start_date: Optional[date],
        end_date: Optional[date],
        group_by: GroupBy,
    ) -> tuple[Summary, dict[int, RateLedger]]:
        if start_date and end_date and end_date < start_date:
            raise ValidationError("endDate must not be before startDate")

        entries = self._tracks.list_for_users(user_ids, start_date=start_date, end_date=end_date)
        all_ledgers = ledgers_by_user(self._rates.list_for_users(user_ids))
        ledgers = {uid: all_ledgers.get(uid, RateLedger()) for uid in user_ids}
        summary = aggregate(entries, ledgers, group_by, calculator=self._calculator)
        log.debug(
            "aggregated %d entries for %d users (%s .. %s, by %s)",
            summary.totals.total_tracks, len(user_ids), start_date, end_date, summary.group_by.value,
        )
        return summary, ledgers

    def period_statistics(
        self,
        *,
        actor: Actor,
        user_id: Optional[int] = None,
        period: Any = StatsPeriod.TODAY,
        start_date: Any = None,
        end_date: Any = None,
        today: Optional[date] = None,
    ) -> PeriodStatistics:
        """Totals for one user over today / this week / this month or explicit dates."""
        today = today or now_local().date()
        users = self.resolve_scope(actor, user_id)
        if len(users) != 1:
            raise ValidationError("Period statistics need a single user")
        (target,) = users

        if start_date or end_date:
            if not (start_date and end_date):
                raise ValidationError("startDate and endDate must be given together")
            start = start_date if isinstance(start_date, date) else parse_iso_date(str(start_date))
            end = end_date if isinstance(end_date, date) else parse_iso_date(str(end_date))
        else:
            try:
                named = StatsPeriod(period or StatsPeriod.TODAY)
            except ValueError:
                named = StatsPeriod.TODAY
            start, end = period_window(named, today)

        summary, ledgers = self._summarize([target], start, end, GroupBy.NONE)
        return PeriodStatistics(
            user_id=target,
            start=start,
            end=end,
            totals=summary.totals,
            current_rate=ledgers[target].rate_on(today),
        )

    def monthly_report(
        self,
        *,
        actor: Actor,
        scope: Scope = None,
        months: Optional[int] = None,
        today: Optional[date] = None,
    ) -> MonthlyReport:
        today = today or now_local().date()
        window = trailing_months(today, int(months or self._trailing_months))
        users = self.resolve_scope(actor, scope)

        summary, ledgers = self._summarize(list(users), window[0], month_end(window[-1]), GroupBy.MONTH)
        series = monthly_series(summary, window)
        return MonthlyReport(
            months=series,
            users=users,
            ledgers=ledgers,
            statistics=series_statistics(b.totals for b in series),
        )
