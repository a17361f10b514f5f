from datetime import date

import pytest

from src.timetrack_payroll.timetrack_payroll.core.enums import Role
from src.timetrack_payroll.timetrack_payroll.core.exceptions import AuthorizationError, ValidationError
from src.timetrack_payroll.timetrack_payroll.timetracks.payment import PaymentService, PaymentState, state_of
from src.timetrack_payroll.timetrack_payroll.users.model import Actor
from tests.fakes import InMemoryTimeTracks, make_track

ADMIN = Actor(1, Role.ADMIN)


def _repo():
    return InMemoryTimeTracks(
        [
            make_track(1, 5, date(2024, 1, 1), 60),
            make_track(2, 5, date(2024, 1, 2), 60, paid=True),
            make_track(4, 6, date(2024, 1, 3), 30),
        ]
    )


def test_partial_batch_flips_only_unpaid_existing():
    repo = _repo()
    count = PaymentService(repo).mark_paid(actor=ADMIN, track_ids=[1, 2, 3])

    assert count == 1
    assert repo.get_by_id(1).was_paid
    assert repo.get_by_id(2).was_paid
    assert repo.get_by_id(3) is None
    assert not repo.get_by_id(4).was_paid


def test_mark_paid_is_idempotent():
    repo = _repo()
    svc = PaymentService(repo)

    assert svc.mark_paid(actor=ADMIN, track_ids=[1, 4]) == 2
    assert svc.mark_paid(actor=ADMIN, track_ids=[1, 4]) == 0
    assert state_of(repo.get_by_id(1)) == PaymentState.PAID
    assert state_of(repo.get_by_id(4)) == PaymentState.PAID


def test_duplicate_and_string_ids_are_normalized():
    repo = _repo()
    assert PaymentService(repo).mark_paid(actor=ADMIN, track_ids=["1", 1, "4"]) == 2


@pytest.mark.parametrize("role", [Role.MODERATOR, Role.USER])
def test_only_admin_marks_paid(role):
    repo = _repo()
    with pytest.raises(AuthorizationError):
        PaymentService(repo).mark_paid(actor=Actor(2, role), track_ids=[1])
    assert not repo.get_by_id(1).was_paid


@pytest.mark.parametrize("track_ids", [None, [], "1,2", ["x"]])
def test_invalid_track_ids(track_ids):
    with pytest.raises(ValidationError):
        PaymentService(_repo()).mark_paid(actor=ADMIN, track_ids=track_ids)
