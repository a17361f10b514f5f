from datetime import date

import pytest

from src.timetrack_payroll.timetrack_payroll.access.policy import (
    can_delete_user,
    can_edit_user,
    can_manage_users,
    can_mark_paid,
    can_mutate,
    can_set_rates,
    can_view,
    ensure_visible,
    require_actor,
)
from src.timetrack_payroll.timetrack_payroll.core.enums import Role
from src.timetrack_payroll.timetrack_payroll.core.exceptions import AuthenticationError, NotFoundError
from src.timetrack_payroll.timetrack_payroll.users.model import Actor
from tests.fakes import make_track, make_user

ADMIN = Actor(1, Role.ADMIN)
MODERATOR = Actor(2, Role.MODERATOR)
USER = Actor(5, Role.USER)


def test_plain_user_sees_only_self():
    assert can_view(USER, 5)
    assert not can_view(USER, 7)


@pytest.mark.parametrize("actor", [ADMIN, MODERATOR])
def test_staff_viewers_see_everyone(actor):
    assert can_view(actor, 7)


def test_only_owner_mutates_unpaid_entry():
    own = make_track(1, 5, date(2024, 1, 1), 60)
    foreign = make_track(2, 7, date(2024, 1, 1), 60)

    assert can_mutate(USER, own)
    assert not can_mutate(USER, foreign)
    assert not can_mutate(ADMIN, foreign)
    assert not can_mutate(MODERATOR, foreign)


def test_paid_entry_is_immutable_even_for_owner():
    paid = make_track(1, 5, date(2024, 1, 1), 60, paid=True)
    assert not can_mutate(USER, paid)


@pytest.mark.parametrize(
    "actor, allowed",
    [(ADMIN, True), (MODERATOR, False), (USER, False)],
)
def test_admin_only_capabilities(actor, allowed):
    assert can_manage_users(actor) is allowed
    assert can_set_rates(actor) is allowed
    assert can_mark_paid(actor) is allowed


def test_admin_profile_editable_only_by_itself():
    other_admin = make_user(9, Role.ADMIN)
    own_admin = make_user(1, Role.ADMIN)

    assert not can_edit_user(ADMIN, other_admin, frozenset({"name"}))
    assert can_edit_user(ADMIN, own_admin, frozenset({"name", "position"}))


def test_self_edit_limited_to_profile_fields():
    me = make_user(5)
    assert can_edit_user(USER, me, frozenset({"name", "login", "password"}))
    assert not can_edit_user(USER, me, frozenset({"position"}))
    assert not can_edit_user(USER, me, frozenset({"role"}))


def test_delete_rules():
    assert can_delete_user(ADMIN, make_user(5))
    assert not can_delete_user(ADMIN, make_user(9, Role.ADMIN))
    assert not can_delete_user(ADMIN, make_user(1, Role.ADMIN))
    assert not can_delete_user(MODERATOR, make_user(5))


def test_foreign_entry_looks_missing_to_plain_user():
    with pytest.raises(NotFoundError):
        ensure_visible(USER, make_track(1, 7, date(2024, 1, 1), 60))
    with pytest.raises(NotFoundError):
        ensure_visible(USER, None)
    assert ensure_visible(MODERATOR, make_track(1, 7, date(2024, 1, 1), 60)).track_id == 1


def test_missing_actor_is_unauthorized():
    with pytest.raises(AuthenticationError):
        require_actor(None)
    assert require_actor(USER) is USER
