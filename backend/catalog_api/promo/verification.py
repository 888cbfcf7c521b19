"""Resolve a code string to exactly one verdict.

Checks run in a fixed order and the first match wins:
code_required, not_found, inactive, not_started, expired, valid.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from catalog_api.promo.clock import Clock, as_utc, utcnow

if TYPE_CHECKING:
    from catalog_api.models.promo_code import PromoCode
    from catalog_api.promo.lookups import PromoCodeLookup

logger = logging.getLogger(__name__)


class VerdictReason(str, enum.Enum):
    CODE_REQUIRED = "code_required"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_STARTED = "not_started"
    EXPIRED = "expired"
    VALID = "valid"


@dataclass(frozen=True)
class Verdict:
    valid: bool
    reason: VerdictReason
    record: PromoCode | None = None


class VerificationEngine:
    def __init__(self, lookup: PromoCodeLookup, clock: Clock = utcnow):
        self.lookup = lookup
        self.clock = clock

    def verify(self, code: Any, now: datetime | None = None) -> Verdict:
        normalized = "" if code is None else str(code).strip()
        if not normalized:
            return Verdict(False, VerdictReason.CODE_REQUIRED)

        record = self.lookup.find_by_code(normalized)
        if record is None:
            logger.info("Promo code %r not found", normalized)
            return Verdict(False, VerdictReason.NOT_FOUND)

        reason = self._reason(record, as_utc(now or self.clock()))
        logger.info("Promo code %s verified: %s", record.code, reason.value)
        return Verdict(reason is VerdictReason.VALID, reason, record)

    @staticmethod
    def _reason(record: PromoCode, now: datetime) -> VerdictReason:
        if not record.is_active:
            return VerdictReason.INACTIVE

        starts_at = as_utc(record.starts_at)
        if starts_at is not None and now < starts_at:
            return VerdictReason.NOT_STARTED

        expires_at = as_utc(record.expires_at)
        if expires_at is not None and now > expires_at:
            return VerdictReason.EXPIRED

        return VerdictReason.VALID
