from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..access.policy import can_delete_user, can_edit_user, can_manage_users, can_view_all
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from ..rates.ledger import RateLedger, ledgers_by_user
from ..rates.repository import RateRepository
from ..timetracks.repository import TimeTrackRepository
from .model import Actor, User
from .repository import UserRepository

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into Flask session after login."""

    user_id: int
    name: str
    role: Role

    @property
    def actor(self) -> Actor:
        return Actor(user_id=self.user_id, role=self.role)


@dataclass(frozen=True)
class StaffMember:
    user: User
    ledger: RateLedger

    def to_dict(self) -> dict:
        current = self.ledger.current_rate()
        return {
            **user_to_dict(self.user),
            "rate": float(current) if current is not None else None,
            "rates": [rate_to_dict(r) for r in self.ledger.history()],
        }


@dataclass(frozen=True)
class Profile(StaffMember):
    time_tracks_count: int = 0

    def to_dict(self) -> dict:
        return {**super().to_dict(), "timeTracksCount": self.time_tracks_count}


def user_to_dict(user: User) -> dict:
    return {
        "id": user.user_id,
        "login": user.login,
        "name": user.name,
        "position": user.position,
        "role": user.role.value,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def rate_to_dict(rate) -> dict:
    return {
        "id": rate.rate_id,
        "user_id": rate.user_id,
        "rate": float(rate.rate),
        "valid_from": rate.valid_from.isoformat(),
    }


def parse_role(value: Optional[str], *, default: Optional[Role] = None) -> Optional[Role]:
    if value is None or str(value).strip() == "":
        return default
    try:
        return Role(str(value).strip())
    except ValueError:
        raise ValidationError("Invalid role")


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, login: str, password: str) -> SessionUser:
        user = self._users.get_by_login((login or "").strip())
        if not user:
            raise AuthenticationError("Invalid login or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            log.warning("failed login for %r", login)
            raise AuthenticationError("Invalid login or password")

        return SessionUser(user_id=user.user_id, name=user.name, role=user.role)

    def resolve_actor(self, user_id: Optional[int]) -> Actor:
        """Re-read the role on each request so role changes apply immediately."""
        if user_id is None:
            raise AuthenticationError("Unauthorized")
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise AuthenticationError("Unauthorized")
        return Actor.of(user)


class UserService:
    """Use case: manage users, profile and password."""

    def __init__(self, users: UserRepository, rates: RateRepository, tracks: TimeTrackRepository):
        self._users = users
        self._rates = rates
        self._tracks = tracks

    def _get_or_404(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def _ensure_login_free(self, login: str, *, own_user_id: Optional[int] = None) -> None:
        existing = self._users.get_by_login(login)
        if existing and existing.user_id != own_user_id:
            raise ValidationError("User with this login already exists")

    def list_staff(self, *, actor: Actor, role: Optional[Role] = None) -> list[StaffMember]:
        if not can_view_all(actor):
            raise AuthorizationError("Forbidden")

        users = list(self._users.list_all(role))
        ledgers = ledgers_by_user(self._rates.list_for_users([u.user_id for u in users]))
        return [StaffMember(user=u, ledger=ledgers.get(u.user_id, RateLedger())) for u in users]

    def get_profile(self, *, actor: Actor) -> Profile:
        user = self._get_or_404(actor.user_id)
        return Profile(
            user=user,
            ledger=RateLedger(self._rates.list_for_users([user.user_id])),
            time_tracks_count=self._tracks.count_for_user(user.user_id),
        )

    def create_user(
        self,
        *,
        actor: Actor,
        login: str,
        password: str,
        name: str,
        position: str,
        role: Optional[Role] = None,
    ) -> User:
        if not can_manage_users(actor):
            raise AuthorizationError("Forbidden")

        login = require_non_empty(login, "Login")
        name = require_non_empty(name, "Name")
        position = require_non_empty(position, "Position")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        self._ensure_login_free(login)

        user = self._users.create_user(
            login=login,
            password_hash=generate_password_hash(password),
            name=name,
            position=position,
            role=role or Role.USER,
        )
        log.info("user %s created user %s (%s)", actor.user_id, user.user_id, user.role.value)
        return user

    def update_user(
        self,
        *,
        actor: Actor,
        user_id: int,
        login: str,
        name: str,
        position: Optional[str] = None,
        password: Optional[str] = None,
        role: Optional[Role] = None,
    ) -> User:
        login = require_non_empty(login, "Login")
        name = require_non_empty(name, "Name")
        position = require_non_empty(position, "Position") if position is not None else None
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        target = self._get_or_404(user_id)
        if actor.user_id != target.user_id and not can_manage_users(actor):
            # plain users cannot even learn whether another account exists
            if not can_view_all(actor):
                raise NotFoundError("User not found")

        changed = {
            f
            for f, new, old in (
                ("login", login, target.login),
                ("name", name, target.name),
                ("position", position, target.position),
                ("role", role, target.role),
            )
            if new is not None and new != old
        }
        if password:
            changed.add("password")

        if not can_edit_user(actor, target, frozenset(changed)):
            log.warning("user %s may not edit %s of user %s", actor.user_id, sorted(changed), target.user_id)
            raise AuthorizationError("Cannot edit this user")
        if "role" in changed and target.is_admin:
            raise AuthorizationError("Administrators cannot be demoted")

        if "login" in changed:
            self._ensure_login_free(login, own_user_id=target.user_id)

        updated = self._users.update_user(
            user_id=target.user_id,
            login=login,
            name=name,
            position=position if position is not None else target.position,
            role=role or target.role,
            password_hash=generate_password_hash(password) if password else None,
        )
        if not updated:
            raise NotFoundError("User not found")
        log.info("user %s updated user %s (%s)", actor.user_id, target.user_id, ", ".join(sorted(changed)) or "no changes")
        return updated

    def delete_user(self, *, actor: Actor, user_id: int) -> None:
        if not can_manage_users(actor):
            raise AuthorizationError("Forbidden")
        if int(user_id) == actor.user_id:
            raise ValidationError("Cannot delete yourself")

        target = self._get_or_404(user_id)
        if not can_delete_user(actor, target):
            raise AuthorizationError("Cannot delete administrators")

        if not self._users.delete_by_id(target.user_id):
            raise NotFoundError("User not found")
        log.info("user %s deleted user %s", actor.user_id, target.user_id)

    def change_password(self, *, actor: Actor, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError("Missing required fields")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)

        user = self._get_or_404(actor.user_id)
        try:
            ok = check_password_hash(user.password_hash, current_password)
        except ValueError:
            ok = False
        if not ok:
            raise ValidationError("Current password is incorrect")

        self._users.update_user(
            user_id=user.user_id,
            login=user.login,
            name=user.name,
            position=user.position,
            role=user.role,
            password_hash=generate_password_hash(new_password),
        )
        log.info("user %s changed password", user.user_id)
