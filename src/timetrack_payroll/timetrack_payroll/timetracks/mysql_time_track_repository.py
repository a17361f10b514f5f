from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_date
from .model import TimeTrack
from .repository import TimeTrackRepository

_COLUMNS = "track_id, user_id, date, time, comment, was_paid, created_at"


def _to_track(r: dict) -> TimeTrack:
    return TimeTrack(
        track_id=int(r["track_id"]),
        user_id=int(r["user_id"]),
        date=normalize_mysql_date(r["date"]),
        time=int(r["time"]),
        comment=r["comment"],
        was_paid=bool(r["was_paid"]),
        created_at=r.get("created_at"),
    )


class MySQLTimeTrackRepository(TimeTrackRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_users(
        self,
        user_ids: Optional[Sequence[int]] = None,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[TimeTrack]:
        clauses: list[str] = []
        params: list[object] = []

        if user_ids is not None:
            clause, values = in_clause("user_id", [int(u) for u in user_ids])
            clauses.append(clause)
            params.extend(values)
        if start_date is not None:
            clauses.append("date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("date <= %s")
            params.append(end_date)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM time_tracks
                {where}
                ORDER BY date DESC, track_id DESC
                """,
                tuple(params),
            )
            return [_to_track(r) for r in fetchall(cur)]

    def get_by_id(self, track_id: int) -> Optional[TimeTrack]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM time_tracks WHERE track_id=%s", (int(track_id),))
            r = fetchone(cur)
            return _to_track(r) if r else None

    def count_for_user(self, user_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM time_tracks WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def create(self, *, user_id: int, work_date: date, minutes: int, comment: str) -> TimeTrack:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_tracks(user_id, date, time, comment, was_paid)
                VALUES(%s,%s,%s,%s,0)
                """,
                (int(user_id), work_date, int(minutes), comment),
            )
            track_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM time_tracks WHERE track_id=%s", (track_id,))
            return _to_track(fetchone(cur))

    def update_unpaid(self, *, track_id: int, minutes: int, comment: str) -> Optional[TimeTrack]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_tracks
                SET time=%s, comment=%s
                WHERE track_id=%s AND was_paid=0
                """,
                (int(minutes), comment, int(track_id)),
            )
            if cur.rowcount == 0:
                # rowcount is 0 both when paid meanwhile and when values are unchanged
                cur.execute(
                    f"SELECT {_COLUMNS} FROM time_tracks WHERE track_id=%s AND was_paid=0",
                    (int(track_id),),
                )
            else:
                cur.execute(f"SELECT {_COLUMNS} FROM time_tracks WHERE track_id=%s", (int(track_id),))
            r = fetchone(cur)
            return _to_track(r) if r else None

    def delete_unpaid(self, track_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_tracks WHERE track_id=%s AND was_paid=0", (int(track_id),))
            return cur.rowcount > 0

    def mark_paid(self, track_ids: Sequence[int]) -> int:
        if not track_ids:
            return 0
        clause, values = in_clause("track_id", [int(t) for t in track_ids])
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE time_tracks SET was_paid=1 WHERE {clause} AND was_paid=0",
                tuple(values),
            )
            return int(cur.rowcount)
