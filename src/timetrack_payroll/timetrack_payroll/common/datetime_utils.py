from __future__ import annotations

from datetime import date, datetime, timedelta

from ..core.enums import StatsPeriod
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def month_start(d: date) -> date:
    return d.replace(day=1)


def add_months(d: date, months: int) -> date:
    """Shift the first day of ``d``'s month by ``months`` (may be negative)."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_end(d: date) -> date:
    return add_months(d, 1) - timedelta(days=1)


def month_key(d: date) -> str:
    return d.strftime("%Y-%m")


def trailing_months(today: date, count: int) -> list[date]:
    """First days of the ``count`` calendar months ending with ``today``'s month, oldest first."""
    if count < 1:
        raise ValidationError("Month window must contain at least one month")
    first = month_start(today)
    return [add_months(first, -offset) for offset in range(count - 1, -1, -1)]


def period_window(period: StatsPeriod, today: date) -> tuple[date, date]:
    """Inclusive (start, end) dates for a named statistics period.

    Weeks start on Sunday.
    """
    if period == StatsPeriod.WEEK:
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if period == StatsPeriod.MONTH:
        return month_start(today), month_end(today)
    return today, today
