from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from ..access.policy import can_mutate, ensure_can_view, ensure_visible
from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_non_empty, require_positive_int
from ..core.exceptions import AuthorizationError, ImmutableStateError, NotFoundError, ValidationError
from ..payroll.calculator.base import EarningsCalculator
from ..payroll.calculator.hourly_calculator import HourlyRateCalculator
from ..rates.repository import RateRepository
from ..rates.ledger import RateLedger
from ..users.model import Actor
from .model import PricedTimeTrack, TimeTrack
from .payment import ensure_unpaid
from .repository import TimeTrackRepository

log = logging.getLogger(__name__)


def _as_date(value: Any, field_name: str = "date") -> date:
    if isinstance(value, date):
        return value
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{field_name} is required")
    return parse_iso_date(str(value))


class TimeTrackService:
    """Use cases: record, edit, delete and list time tracks.

    Content changes are the owner's alone and only while unpaid; admins and
    moderators can look but not touch.
    """

    def __init__(
        self,
        tracks: TimeTrackRepository,
        rates: RateRepository,
        *,
        calculator: Optional[EarningsCalculator] = None,
    ):
        self._tracks = tracks
        self._rates = rates
        self._calculator = calculator or HourlyRateCalculator()

    def _price(self, entry: TimeTrack, ledger: Optional[RateLedger] = None) -> PricedTimeTrack:
        if ledger is None:
            ledger = RateLedger(self._rates.list_for_users([entry.user_id]))
        return self._calculator.price(entry, ledger)

    def list_tracks(
        self,
        *,
        actor: Actor,
        user_id: Optional[int] = None,
        on_date: Any = None,
        start_date: Any = None,
        end_date: Any = None,
    ) -> list[PricedTimeTrack]:
        """Entries newest first: one day, an inclusive range, or everything."""
        try:
            target = int(user_id) if user_id is not None else actor.user_id
        except (TypeError, ValueError):
            raise ValidationError("Invalid userId")
        ensure_can_view(actor, target)

        start = end = None
        if on_date:
            start = end = _as_date(on_date)
        elif start_date or end_date:
            if not (start_date and end_date):
                raise ValidationError("startDate and endDate must be given together")
            start, end = _as_date(start_date, "startDate"), _as_date(end_date, "endDate")
            if end < start:
                raise ValidationError("endDate must not be before startDate")

        entries = self._tracks.list_for_users([target], start_date=start, end_date=end)
        ledger = RateLedger(self._rates.list_for_users([target]))
        return [self._price(e, ledger) for e in entries]

    def record_time(self, *, actor: Actor, work_date: Any, minutes: Any, comment: str) -> PricedTimeTrack:
        """Self-service: the entry always belongs to the actor and starts unpaid."""
        day = _as_date(work_date)
        minutes = require_positive_int(minutes, "Time")
        comment = require_non_empty(comment, "Comment")

        entry = self._tracks.create(user_id=actor.user_id, work_date=day, minutes=minutes, comment=comment)
        log.info("user %s recorded %d min on %s (track %s)", actor.user_id, minutes, day, entry.track_id)
        return self._price(entry)

    def _get_mutable(self, actor: Actor, track_id: Any, action: str) -> TimeTrack:
        try:
            track_id = int(track_id)
        except (TypeError, ValueError):
            raise ValidationError("Missing required fields")

        entry = ensure_visible(actor, self._tracks.get_by_id(track_id))
        ensure_unpaid(entry, action)
        if not can_mutate(actor, entry):
            log.warning("user %s tried to %s time track %s of user %s", actor.user_id, action, track_id, entry.user_id)
            raise AuthorizationError(f"Only the owner can {action} this time track")
        return entry

    def _conflict_or_missing(self, track_id: int, action: str) -> Exception:
        # The row changed between the check and the write.
        current = self._tracks.get_by_id(track_id)
        if current is None:
            return NotFoundError("Time track not found")
        return ImmutableStateError(f"Cannot {action} paid time track")

    def edit_time(self, *, actor: Actor, track_id: Any, minutes: Any, comment: str) -> PricedTimeTrack:
        if track_id is None:
            raise ValidationError("Missing required fields")
        minutes = require_positive_int(minutes, "Time")
        comment = require_non_empty(comment, "Comment")

        entry = self._get_mutable(actor, track_id, "edit")
        updated = self._tracks.update_unpaid(track_id=entry.track_id, minutes=minutes, comment=comment)
        if updated is None:
            raise self._conflict_or_missing(entry.track_id, "edit")

        log.info("user %s edited time track %s", actor.user_id, entry.track_id)
        return self._price(updated)

    def delete_time(self, *, actor: Actor, track_id: Any) -> None:
        if track_id is None:
            raise ValidationError("Missing required fields")

        entry = self._get_mutable(actor, track_id, "delete")
        if not self._tracks.delete_unpaid(entry.track_id):
            raise self._conflict_or_missing(entry.track_id, "delete")
        log.info("user %s deleted time track %s", actor.user_id, entry.track_id)
