from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from ..access.policy import can_set_rates, ensure_can_view
from ..common.datetime_utils import parse_iso_date
from ..common.validators import require_positive_decimal
from ..core.constants import RATE_DECIMAL_PLACES
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.model import Actor
from ..users.repository import UserRepository
from .ledger import RateLedger, ledgers_by_user
from .model import Rate
from .repository import RateRepository

log = logging.getLogger(__name__)


def _as_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    if value is None or str(value).strip() == "":
        raise ValidationError("valid_from is required")
    return parse_iso_date(str(value))


class RateService:
    """Use case: maintain users' rate ledgers (admin) and read them."""

    def __init__(self, rates: RateRepository, users: UserRepository):
        self._rates = rates
        self._users = users

    def _ensure_user(self, user_id: int) -> None:
        if not self._users.get_by_id(int(user_id)):
            raise NotFoundError("User not found")

    def ledger_for(self, user_id: int) -> RateLedger:
        return RateLedger(self._rates.list_for_users([int(user_id)]))

    def ledgers_for(self, user_ids: Iterable[int]) -> dict[int, RateLedger]:
        ids = sorted({int(u) for u in user_ids})
        ledgers = ledgers_by_user(self._rates.list_for_users(ids))
        return {uid: ledgers.get(uid, RateLedger()) for uid in ids}

    def current_rate(self, user_id: int, *, on_date: Optional[date] = None) -> Optional[Decimal]:
        return self.ledger_for(user_id).rate_on(on_date)

    def list_rates(self, *, actor: Actor, user_id: int) -> list[Rate]:
        """Rate history, newest first."""
        ensure_can_view(actor, user_id)
        self._ensure_user(user_id)
        return self.ledger_for(user_id).history()

    def create_rate(self, *, actor: Actor, user_id: int, rate: Any, valid_from: Any) -> Rate:
        if not can_set_rates(actor):
            log.warning("user %s (%s) tried to set a rate", actor.user_id, actor.role.value)
            raise AuthorizationError("Forbidden")

        amount = require_positive_decimal(rate, "Rate", places=RATE_DECIMAL_PLACES)
        start = _as_date(valid_from)
        self._ensure_user(user_id)

        created = self._rates.create(user_id=int(user_id), rate=amount, valid_from=start)
        log.info("user %s set rate %s for user %s from %s", actor.user_id, amount, user_id, start)
        return created

    def update_rate(self, *, actor: Actor, user_id: int, rate_id: Any, rate: Any, valid_from: Any) -> Rate:
        """Edit an existing ledger entry; earnings are recomputed from it on the next read."""
        if not can_set_rates(actor):
            raise AuthorizationError("Forbidden")
        if rate_id is None or str(rate_id).strip() == "":
            raise ValidationError("rateId is required")
        try:
            rate_id = int(rate_id)
        except (TypeError, ValueError):
            raise ValidationError("rateId is required")

        existing = self._rates.get_by_id(rate_id)
        if not existing or existing.user_id != int(user_id):
            raise NotFoundError("Rate not found")

        amount = require_positive_decimal(rate, "Rate", places=RATE_DECIMAL_PLACES)
        start = _as_date(valid_from)

        updated = self._rates.update(rate_id=rate_id, rate=amount, valid_from=start)
        if not updated:
            raise NotFoundError("Rate not found")
        log.info("user %s changed rate %s of user %s to %s from %s", actor.user_id, rate_id, user_id, amount, start)
        return updated
