from __future__ import annotations

from contextlib import contextmanager
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserRepository

_COLUMNS = "user_id, login, name, position, role, password_hash, created_at"
DUPLICATE_ENTRY = 1062


@contextmanager
def _unique_login():
    """Map a duplicate-key error on users.login to a validation error."""
    try:
        yield
    except mysql.connector.IntegrityError as e:
        if e.errno == DUPLICATE_ENTRY:
            raise ValidationError("User with this login already exists") from e
        raise


def _to_user(row: dict) -> User:
    return User(
        user_id=int(row["user_id"]),
        login=row["login"],
        name=row["name"],
        position=row["position"],
        role=Role(row["role"]),
        password_hash=row.get("password_hash") or "",
        created_at=row.get("created_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_login(self, login: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE login=%s", (login,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def list_all(self, role: Optional[Role] = None) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            if role is None:
                cur.execute(f"SELECT {_COLUMNS} FROM users ORDER BY created_at DESC, user_id DESC")
            else:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM users WHERE role=%s ORDER BY created_at DESC, user_id DESC",
                    (role.value,),
                )
            return [_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        login: str,
        password_hash: str,
        name: str,
        position: str,
        role: Role,
    ) -> User:
        with _unique_login(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(login, password_hash, name, position, role)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (login, password_hash, name, position, role.value),
            )
            user_id = int(cur.lastrowid)
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (user_id,))
            return _to_user(fetchone(cur))

    def update_user(
        self,
        *,
        user_id: int,
        login: str,
        name: str,
        position: str,
        role: Role,
        password_hash: Optional[str] = None,
    ) -> Optional[User]:
        sets = ["login=%s", "name=%s", "position=%s", "role=%s"]
        params: list[object] = [login, name, position, role.value]
        if password_hash:
            sets.append("password_hash=%s")
            params.append(password_hash)
        params.append(int(user_id))

        with _unique_login(), db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {', '.join(sets)} WHERE user_id=%s", tuple(params))
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
