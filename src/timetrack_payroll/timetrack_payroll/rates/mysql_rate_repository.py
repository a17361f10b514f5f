from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    in_clause,
    normalize_mysql_date,
    normalize_mysql_decimal,
)
from .model import Rate
from .repository import RateRepository


def _to_rate(r: dict) -> Rate:
    return Rate(
        rate_id=int(r["rate_id"]),
        user_id=int(r["user_id"]),
        rate=normalize_mysql_decimal(r["rate"]),
        valid_from=normalize_mysql_date(r["valid_from"]),
    )


class MySQLRateRepository(RateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_users(self, user_ids: Optional[Sequence[int]] = None) -> Sequence[Rate]:
        where, params = "", []
        if user_ids is not None:
            clause, params = in_clause("user_id", [int(u) for u in user_ids])
            where = f"WHERE {clause}"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT rate_id, user_id, rate, valid_from
                FROM user_rates
                {where}
                ORDER BY valid_from DESC, rate_id DESC
                """,
                tuple(params),
            )
            return [_to_rate(r) for r in fetchall(cur)]

    def get_by_id(self, rate_id: int) -> Optional[Rate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT rate_id, user_id, rate, valid_from FROM user_rates WHERE rate_id=%s",
                (int(rate_id),),
            )
            r = fetchone(cur)
            return _to_rate(r) if r else None

    def create(self, *, user_id: int, rate: Decimal, valid_from: date) -> Rate:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO user_rates(user_id, rate, valid_from) VALUES(%s,%s,%s)",
                (int(user_id), rate, valid_from),
            )
            cur.execute(
                "SELECT rate_id, user_id, rate, valid_from FROM user_rates WHERE rate_id=%s",
                (int(cur.lastrowid),),
            )
            return _to_rate(fetchone(cur))

    def update(self, *, rate_id: int, rate: Decimal, valid_from: date) -> Optional[Rate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE user_rates SET rate=%s, valid_from=%s WHERE rate_id=%s",
                (rate, valid_from, int(rate_id)),
            )
            cur.execute(
                "SELECT rate_id, user_id, rate, valid_from FROM user_rates WHERE rate_id=%s",
                (int(rate_id),),
            )
            r = fetchone(cur)
            return _to_rate(r) if r else None
