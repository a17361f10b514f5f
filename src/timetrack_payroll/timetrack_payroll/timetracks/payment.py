"""Payment state machine for time tracks: UNPAID -> PAID, PAID is terminal."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from ..access.policy import can_mark_paid
from ..core.exceptions import AuthorizationError, ImmutableStateError, ValidationError
from ..users.model import Actor
from .model import TimeTrack
from .repository import TimeTrackRepository

log = logging.getLogger(__name__)


class PaymentState(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"


def state_of(entry: TimeTrack) -> PaymentState:
    return PaymentState.PAID if entry.was_paid else PaymentState.UNPAID


def ensure_unpaid(entry: TimeTrack, action: str = "change") -> None:
    """Paid entries are frozen for everyone, owner and admins included."""
    if state_of(entry) == PaymentState.PAID:
        raise ImmutableStateError(f"Cannot {action} paid time track")


def normalize_ids(track_ids: Iterable) -> list[int]:
    if track_ids is None or isinstance(track_ids, (str, bytes)):
        raise ValidationError("Missing or invalid trackIds")
    ids: list[int] = []
    for raw in track_ids:
        try:
            ids.append(int(raw))
        except (TypeError, ValueError):
            raise ValidationError("Missing or invalid trackIds")
    if not ids:
        raise ValidationError("Missing or invalid trackIds")
    # de-duplicate, keep order
    return list(dict.fromkeys(ids))


class PaymentService:
    """Batch transition of time tracks to PAID.

    Already-paid and unknown ids are skipped; the result is the number of
    entries that actually changed state. The repository performs a single
    conditional update, so concurrent batches never flip a row twice.
    """

    def __init__(self, tracks: TimeTrackRepository):
        self._tracks = tracks

    def mark_paid(self, *, actor: Actor, track_ids: Iterable) -> int:
        if not can_mark_paid(actor):
            log.warning("user %s (%s) tried to mark time tracks paid", actor.user_id, actor.role.value)
            raise AuthorizationError("Forbidden")

        ids = normalize_ids(track_ids)
        count = self._tracks.mark_paid(ids)
        log.info("user %s marked %d of %d time tracks paid", actor.user_id, count, len(ids))
        return count
