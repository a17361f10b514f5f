from datetime import date

import pytest

from src.timetrack_payroll.timetrack_payroll.core.enums import Role
from src.timetrack_payroll.timetrack_payroll.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from src.timetrack_payroll.timetrack_payroll.users.model import Actor
from src.timetrack_payroll.timetrack_payroll.users.service import AuthService, UserService
from tests.fakes import InMemoryRates, InMemoryTimeTracks, InMemoryUsers, make_rate, make_track, make_user

ADMIN = Actor(1, Role.ADMIN)
MODERATOR = Actor(2, Role.MODERATOR)
USER = Actor(5, Role.USER)


@pytest.fixture()
def repos():
    users = InMemoryUsers(
        [
            make_user(1, Role.ADMIN, login="admin"),
            make_user(2, Role.MODERATOR, login="moderator"),
            make_user(3, Role.ADMIN, login="boss"),
            make_user(5, login="alice"),
            make_user(7, login="bob"),
        ]
    )
    rates = InMemoryRates([make_rate(1, 5, 500, date(2024, 1, 1)), make_rate(2, 5, 700, date(2024, 6, 1))])
    tracks = InMemoryTimeTracks([make_track(1, 5, date(2024, 3, 1), 60), make_track(2, 7, date(2024, 3, 1), 30)])
    users.tracks = tracks
    users.rates = rates
    return users, rates, tracks


@pytest.fixture()
def svc(repos):
    return UserService(*repos)


def test_authenticate(repos):
    auth = AuthService(repos[0])
    session_user = auth.authenticate(" alice ", "secret123")
    assert session_user.user_id == 5
    assert session_user.actor == Actor(5, Role.USER)

    with pytest.raises(AuthenticationError):
        auth.authenticate("alice", "wrong")
    with pytest.raises(AuthenticationError):
        auth.authenticate("nobody", "secret123")


def test_resolve_actor_rereads_role(repos):
    users = repos[0]
    auth = AuthService(users)
    assert auth.resolve_actor(5).role == Role.USER

    alice = users.get_by_id(5)
    users.update_user(user_id=5, login=alice.login, name=alice.name, position=alice.position, role=Role.MODERATOR)
    assert auth.resolve_actor(5).role == Role.MODERATOR

    with pytest.raises(AuthenticationError):
        auth.resolve_actor(99)


def test_list_staff_includes_rate_history(svc):
    staff = {m.user.user_id: m.to_dict() for m in svc.list_staff(actor=MODERATOR)}
    assert staff[5]["rates"][0]["rate"] == 700.0
    assert staff[7]["rate"] is None

    with pytest.raises(AuthorizationError):
        svc.list_staff(actor=USER)


def test_profile_counts_own_tracks(svc):
    profile = svc.get_profile(actor=USER).to_dict()
    assert profile["login"] == "alice"
    assert profile["timeTracksCount"] == 1


def test_create_user(svc, repos):
    user = svc.create_user(actor=ADMIN, login="carol", password="carol123", name="Carol", position="QA")
    assert user.role == Role.USER
    assert repos[0].get_by_login("carol").user_id == user.user_id

    with pytest.raises(ValidationError):
        svc.create_user(actor=ADMIN, login="carol", password="carol123", name="C", position="QA")
    with pytest.raises(ValidationError):
        svc.create_user(actor=ADMIN, login="dave", password="123", name="Dave", position="QA")
    with pytest.raises(AuthorizationError):
        svc.create_user(actor=MODERATOR, login="erin", password="erin1234", name="Erin", position="QA")


def test_delete_user_rules(svc, repos):
    with pytest.raises(ValidationError):
        svc.delete_user(actor=ADMIN, user_id=1)
    with pytest.raises(AuthorizationError):
        svc.delete_user(actor=ADMIN, user_id=3)
    with pytest.raises(AuthorizationError):
        svc.delete_user(actor=MODERATOR, user_id=5)
    with pytest.raises(NotFoundError):
        svc.delete_user(actor=ADMIN, user_id=99)


def test_delete_user_cascades(svc, repos):
    users, rates, tracks = repos
    svc.delete_user(actor=ADMIN, user_id=5)

    assert users.get_by_id(5) is None
    assert rates.list_for_users([5]) == []
    assert tracks.count_for_user(5) == 0
    assert tracks.count_for_user(7) == 1


def test_self_edit_of_profile_fields(svc):
    updated = svc.update_user(actor=USER, user_id=5, login="alice2", name="Alice")
    assert updated.login == "alice2"
    assert updated.position == "Developer"

    with pytest.raises(AuthorizationError):
        svc.update_user(actor=USER, user_id=5, login="alice2", name="Alice", position="CTO")
    with pytest.raises(AuthorizationError):
        svc.update_user(actor=USER, user_id=5, login="alice2", name="Alice", role=Role.ADMIN)


def test_plain_user_cannot_see_other_accounts(svc):
    with pytest.raises(NotFoundError):
        svc.update_user(actor=USER, user_id=7, login="bob", name="Hacked")


def test_moderator_cannot_edit_others(svc):
    with pytest.raises(AuthorizationError):
        svc.update_user(actor=MODERATOR, user_id=5, login="alice", name="Renamed")


def test_admin_edits_users_but_not_other_admins(svc):
    updated = svc.update_user(
        actor=ADMIN, user_id=5, login="alice", name="Alice", position="Lead", role=Role.MODERATOR
    )
    assert updated.role == Role.MODERATOR
    assert updated.position == "Lead"

    with pytest.raises(AuthorizationError):
        svc.update_user(actor=ADMIN, user_id=3, login="boss", name="Renamed")
    with pytest.raises(AuthorizationError):
        svc.update_user(actor=ADMIN, user_id=1, login="admin", name="User 1", role=Role.USER)


def test_login_must_stay_unique(svc):
    with pytest.raises(ValidationError):
        svc.update_user(actor=USER, user_id=5, login="bob", name="Alice")


def test_change_password(svc, repos):
    with pytest.raises(ValidationError):
        svc.change_password(actor=USER, current_password="wrong", new_password="newpass1")
    with pytest.raises(ValidationError):
        svc.change_password(actor=USER, current_password="secret123", new_password="123")

    svc.change_password(actor=USER, current_password="secret123", new_password="newpass1")
    auth = AuthService(repos[0])
    assert auth.authenticate("alice", "newpass1").user_id == 5
    with pytest.raises(AuthenticationError):
        auth.authenticate("alice", "secret123")
