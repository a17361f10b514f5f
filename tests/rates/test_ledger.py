from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

from src.timetrack_payroll.timetrack_payroll.rates import ledger as ledger_module
from src.timetrack_payroll.timetrack_payroll.rates.ledger import RateLedger, ledgers_by_user, resolve_rate
from tests.fakes import make_rate

LEDGER = [
    make_rate(2, 1, 1500, date(2024, 6, 1)),
    make_rate(1, 1, 1000, date(2024, 1, 1)),
]


def test_resolves_latest_rate_not_after_date():
    assert resolve_rate(LEDGER, date(2024, 5, 15)) == Decimal(1000)
    assert resolve_rate(LEDGER, date(2024, 7, 1)) == Decimal(1500)


def test_valid_from_is_inclusive():
    assert resolve_rate(LEDGER, date(2024, 6, 1)) == Decimal(1500)
    assert resolve_rate(LEDGER, date(2024, 5, 31)) == Decimal(1000)


def test_empty_ledger_has_no_rate():
    assert resolve_rate([], date(2024, 1, 1)) is None
    assert RateLedger().rate_on(date(2024, 1, 1)) is None


def test_date_before_first_rate_has_no_rate():
    assert resolve_rate(LEDGER, date(2023, 12, 31)) is None
    assert RateLedger(LEDGER).rate_on(date(2023, 12, 31)) is None


def test_same_valid_from_higher_id_wins():
    rates = [
        make_rate(7, 1, 900, date(2024, 3, 1)),
        make_rate(3, 1, 800, date(2024, 3, 1)),
    ]
    assert resolve_rate(rates, date(2024, 3, 5)) == Decimal(900)
    assert RateLedger(rates).rate_on(date(2024, 3, 5)) == Decimal(900)
    assert resolve_rate(list(reversed(rates)), date(2024, 3, 5)) == Decimal(900)


def test_ledger_and_function_agree_on_every_day():
    rates = [
        make_rate(1, 1, 100, date(2024, 1, 10)),
        make_rate(2, 1, 200, date(2024, 2, 1)),
        make_rate(3, 1, 300, date(2024, 2, 1)),
        make_rate(4, 1, 400, date(2024, 4, 15)),
    ]
    ledger = RateLedger(rates)
    day = date(2024, 1, 1)
    while day < date(2024, 6, 1):
        assert ledger.rate_on(day) == resolve_rate(rates, day)
        day += timedelta(days=1)


def test_resolution_is_monotonic_in_date():
    rates = [
        make_rate(1, 1, 100, date(2024, 1, 1)),
        make_rate(2, 1, 200, date(2024, 3, 1)),
        make_rate(3, 1, 300, date(2024, 9, 1)),
    ]
    d1, d2 = date(2024, 2, 1), date(2024, 5, 1)
    r1 = resolve_rate(rates, d1)
    r2 = resolve_rate(rates, d2)
    in_between = {r.rate for r in rates if d1 < r.valid_from <= d2}
    assert r1 == Decimal(100)
    assert r2 == r1 or r2 in in_between
    # a rate that starts after d2 is never picked
    assert r2 != Decimal(300)


def test_future_rate_does_not_change_past_resolution():
    before = resolve_rate(LEDGER, date(2024, 7, 1))
    with_future = LEDGER + [make_rate(3, 1, 5000, date(2030, 1, 1))]
    assert resolve_rate(with_future, date(2024, 7, 1)) == before


def test_omitted_date_means_today(monkeypatch):
    monkeypatch.setattr(ledger_module, "now_local", lambda: datetime(2024, 5, 20, 10, 0))
    assert resolve_rate(LEDGER) == Decimal(1000)
    assert RateLedger(LEDGER).current_rate() == Decimal(1000)


def test_history_is_newest_first():
    history = RateLedger(reversed(LEDGER)).history()
    assert [r.rate_id for r in history] == [2, 1]


def test_ledgers_by_user_splits_rates():
    rates = LEDGER + [make_rate(5, 2, 700, date(2024, 1, 1))]
    ledgers = ledgers_by_user(rates)
    assert set(ledgers) == {1, 2}
    assert len(ledgers[1]) == 2
    assert ledgers[2].rate_on(date(2024, 8, 1)) == Decimal(700)
