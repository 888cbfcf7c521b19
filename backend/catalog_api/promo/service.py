"""One pipeline for create and update: validate -> normalize -> apply.

Nothing here touches a session. Callers own the transaction; they run
``validate_and_build`` and ``apply_promo_code`` inside it and flush.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping

from catalog_api.core.errors import ValidationFailed
from catalog_api.promo.clock import utcnow
from catalog_api.promo.scope import ScopeResolver, apply_scope
from catalog_api.promo.validator import NormalizedPromoCode, PromoCodeValidator, check_code_unique

if TYPE_CHECKING:
    from catalog_api.models.promo_code import PromoCode
    from catalog_api.promo.lookups import PromoLookups

logger = logging.getLogger(__name__)


class PromoCodeValidationError(ValidationFailed):
    pass


def validate_and_build(
    payload: Mapping[str, Any],
    lookups: PromoLookups,
    existing: PromoCode | None = None,
    validator: PromoCodeValidator | None = None,
) -> NormalizedPromoCode:
    """Run every check for ``payload`` and return the resolved value.

    Raises ``PromoCodeValidationError`` for field failures (structural or
    duplicate code) and ``ScopeError`` when the scope target is missing.
    """
    result = (validator or PromoCodeValidator()).validate(payload, existing)
    if not result.ok:
        logger.debug("Promo code payload rejected: %s", result.errors)
        raise PromoCodeValidationError(result.errors)

    normalized = result.value
    duplicate = check_code_unique(
        normalized.code,
        lookups,
        exclude_id=existing.id if existing is not None else None,
    )
    if duplicate:
        logger.debug("Promo code %r collides with an existing code", normalized.code)
        raise PromoCodeValidationError(duplicate)

    normalized.scope = ScopeResolver(lookups).resolve(normalized.scope_type, normalized.ids)
    return normalized


def apply_promo_code(record: PromoCode, normalized: NormalizedPromoCode, now: datetime | None = None) -> PromoCode:
    if normalized.scope is None:
        raise ValueError("scope must be resolved before it is applied")

    now = now or utcnow()
    record.code = normalized.code
    record.description = normalized.description
    record.discount_percent = normalized.discount_percent
    record.is_active = normalized.is_active
    record.starts_at = normalized.starts_at
    record.expires_at = normalized.expires_at
    apply_scope(record, normalized.scope)

    if record.created_at is None:
        record.created_at = now
    record.updated_at = now
    return record
