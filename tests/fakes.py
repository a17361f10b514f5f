from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from werkzeug.security import generate_password_hash

from src.timetrack_payroll.timetrack_payroll.core.enums import Role
from src.timetrack_payroll.timetrack_payroll.rates.model import Rate
from src.timetrack_payroll.timetrack_payroll.timetracks.model import TimeTrack
from src.timetrack_payroll.timetrack_payroll.users.model import User


class InMemoryUsers:
    def __init__(self, users: Sequence[User] = ()):
        self._by_id: dict[int, User] = {u.user_id: u for u in users}
        self._next_id = max(self._by_id, default=0) + 1
        self.tracks: Optional["InMemoryTimeTracks"] = None
        self.rates: Optional["InMemoryRates"] = None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._by_id.get(int(user_id))

    def get_by_login(self, login: str) -> Optional[User]:
        return next((u for u in self._by_id.values() if u.login == login), None)

    def list_all(self, role: Optional[Role] = None) -> Sequence[User]:
        users = [u for u in self._by_id.values() if role is None or u.role == role]
        return sorted(users, key=lambda u: u.user_id, reverse=True)

    def create_user(self, *, login, password_hash, name, position, role) -> User:
        user = User(
            user_id=self._next_id,
            login=login,
            name=name,
            position=position,
            role=role,
            password_hash=password_hash,
            created_at=datetime(2024, 1, 1, 9, 0),
        )
        self._by_id[user.user_id] = user
        self._next_id += 1
        return user

    def update_user(self, *, user_id, login, name, position, role, password_hash=None) -> Optional[User]:
        old = self._by_id.get(int(user_id))
        if not old:
            return None
        new = User(
            user_id=old.user_id,
            login=login,
            name=name,
            position=position,
            role=role,
            password_hash=password_hash or old.password_hash,
            created_at=old.created_at,
        )
        self._by_id[new.user_id] = new
        return new

    def delete_by_id(self, user_id: int) -> bool:
        if self._by_id.pop(int(user_id), None) is None:
            return False
        # mimic ON DELETE CASCADE
        if self.tracks:
            self.tracks.drop_user(int(user_id))
        if self.rates:
            self.rates.drop_user(int(user_id))
        return True


class InMemoryRates:
    def __init__(self, rates: Sequence[Rate] = ()):
        self._by_id: dict[int, Rate] = {r.rate_id: r for r in rates}
        self._next_id = max(self._by_id, default=0) + 1

    def list_for_users(self, user_ids=None) -> Sequence[Rate]:
        rates = [r for r in self._by_id.values() if user_ids is None or r.user_id in set(user_ids)]
        return sorted(rates, key=lambda r: (r.valid_from, r.rate_id), reverse=True)

    def get_by_id(self, rate_id: int) -> Optional[Rate]:
        return self._by_id.get(int(rate_id))

    def create(self, *, user_id: int, rate: Decimal, valid_from: date) -> Rate:
        new = Rate(rate_id=self._next_id, user_id=user_id, rate=rate, valid_from=valid_from)
        self._by_id[new.rate_id] = new
        self._next_id += 1
        return new

    def update(self, *, rate_id: int, rate: Decimal, valid_from: date) -> Optional[Rate]:
        old = self._by_id.get(int(rate_id))
        if not old:
            return None
        new = Rate(rate_id=old.rate_id, user_id=old.user_id, rate=rate, valid_from=valid_from)
        self._by_id[new.rate_id] = new
        return new

    def drop_user(self, user_id: int) -> None:
        self._by_id = {k: r for k, r in self._by_id.items() if r.user_id != user_id}


class InMemoryTimeTracks:
    def __init__(self, tracks: Sequence[TimeTrack] = ()):
        self._by_id: dict[int, TimeTrack] = {t.track_id: t for t in tracks}
        self._next_id = max(self._by_id, default=0) + 1

    def list_for_users(self, user_ids=None, *, start_date=None, end_date=None) -> Sequence[TimeTrack]:
        out = []
        for t in self._by_id.values():
            if user_ids is not None and t.user_id not in set(user_ids):
                continue
            if start_date is not None and t.date < start_date:
                continue
            if end_date is not None and t.date > end_date:
                continue
            out.append(t)
        return sorted(out, key=lambda t: (t.date, t.track_id), reverse=True)

    def get_by_id(self, track_id: int) -> Optional[TimeTrack]:
        return self._by_id.get(int(track_id))

    def count_for_user(self, user_id: int) -> int:
        return sum(1 for t in self._by_id.values() if t.user_id == user_id)

    def create(self, *, user_id, work_date, minutes, comment) -> TimeTrack:
        new = TimeTrack(
            track_id=self._next_id,
            user_id=user_id,
            date=work_date,
            time=minutes,
            comment=comment,
            was_paid=False,
            created_at=datetime(2024, 1, 1, 12, 0),
        )
        self._by_id[new.track_id] = new
        self._next_id += 1
        return new

    def update_unpaid(self, *, track_id, minutes, comment) -> Optional[TimeTrack]:
        old = self._by_id.get(int(track_id))
        if not old or old.was_paid:
            return None
        new = TimeTrack(
            track_id=old.track_id,
            user_id=old.user_id,
            date=old.date,
            time=minutes,
            comment=comment,
            was_paid=False,
            created_at=old.created_at,
        )
        self._by_id[new.track_id] = new
        return new

    def delete_unpaid(self, track_id: int) -> bool:
        old = self._by_id.get(int(track_id))
        if not old or old.was_paid:
            return False
        del self._by_id[old.track_id]
        return True

    def mark_paid(self, track_ids) -> int:
        count = 0
        for tid in track_ids:
            old = self._by_id.get(int(tid))
            if old and not old.was_paid:
                self._by_id[old.track_id] = TimeTrack(
                    track_id=old.track_id,
                    user_id=old.user_id,
                    date=old.date,
                    time=old.time,
                    comment=old.comment,
                    was_paid=True,
                    created_at=old.created_at,
                )
                count += 1
        return count

    def drop_user(self, user_id: int) -> None:
        self._by_id = {k: t for k, t in self._by_id.items() if t.user_id != user_id}


def make_user(user_id: int, role: Role = Role.USER, *, login: Optional[str] = None, password: str = "secret123") -> User:
    return User(
        user_id=user_id,
        login=login or f"user{user_id}",
        name=f"User {user_id}",
        position="Developer",
        role=role,
        password_hash=generate_password_hash(password),
        created_at=datetime(2024, 1, user_id % 28 + 1, 9, 0),
    )


def make_track(track_id: int, user_id: int, day: date, minutes: int, *, paid: bool = False) -> TimeTrack:
    return TimeTrack(
        track_id=track_id,
        user_id=user_id,
        date=day,
        time=minutes,
        comment=f"work #{track_id}",
        was_paid=paid,
        created_at=datetime(2030, 1, 1),
    )


def make_rate(rate_id: int, user_id: int, amount, valid_from: date) -> Rate:
    return Rate(rate_id=rate_id, user_id=user_id, rate=Decimal(str(amount)), valid_from=valid_from)
