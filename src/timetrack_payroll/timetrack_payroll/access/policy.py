"""Who may see and change what.

All checks take the actor explicitly; nothing here reads the session.
"""

from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from ..timetracks.model import TimeTrack
from ..users.model import Actor, User

STAFF_VIEWERS = frozenset({Role.ADMIN, Role.MODERATOR})

# Profile fields any user may change on their own account.
SELF_EDITABLE_FIELDS = frozenset({"login", "name", "password"})


def require_actor(actor: Optional[Actor]) -> Actor:
    if actor is None:
        raise AuthenticationError("Unauthorized")
    return actor


def can_view(actor: Actor, target_user_id: int) -> bool:
    return actor.role in STAFF_VIEWERS or actor.user_id == int(target_user_id)


def can_view_all(actor: Actor) -> bool:
    return actor.role in STAFF_VIEWERS


def can_mutate(actor: Actor, entry: TimeTrack) -> bool:
    """Only the owner may edit/delete, and only before payment."""
    return actor.user_id == entry.user_id and not entry.was_paid


def can_manage_users(actor: Actor) -> bool:
    return actor.role == Role.ADMIN


def can_set_rates(actor: Actor) -> bool:
    return actor.role == Role.ADMIN


def can_mark_paid(actor: Actor) -> bool:
    return actor.role == Role.ADMIN


def can_edit_user(actor: Actor, target: User, fields: frozenset[str]) -> bool:
    is_self = actor.user_id == target.user_id
    if target.is_admin and not is_self:
        return False
    if is_self and fields <= SELF_EDITABLE_FIELDS:
        return True
    return can_manage_users(actor)


def can_delete_user(actor: Actor, target: User) -> bool:
    return can_manage_users(actor) and not target.is_admin and actor.user_id != target.user_id


def ensure_can_view(actor: Actor, target_user_id: int) -> None:
    if not can_view(actor, target_user_id):
        raise AuthorizationError("Forbidden")


def ensure_visible(actor: Actor, entry: Optional[TimeTrack]) -> TimeTrack:
    """Foreign records outside the actor's scope look exactly like missing ones."""
    if entry is None or not can_view(actor, entry.user_id):
        raise NotFoundError("Time track not found")
    return entry
