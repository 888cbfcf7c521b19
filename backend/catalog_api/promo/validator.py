"""Field and cross-field validation for promo code input.

``PromoCodeValidator.validate`` runs the payload through ``PromoCodeInput``
and reports every violation; it never stops at the first one. On update the
payload is first merged over the stored record so the rules always see the
full would-be state. Uniqueness needs a query and runs as its own step,
``check_code_unique``, once the structural rules pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Mapping
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from catalog_api.core.config import settings
from catalog_api.promo.clock import as_utc
from catalog_api.promo.scope import Scope, ScopeIds, ScopeType, scope_field, target_required_message
from catalog_api.schemas.promo_code import (
    CODE_MAX_LENGTH,
    CODE_MIN_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    DISCOUNT_MAX,
    DISCOUNT_MIN,
    PROMO_RULE,
    PromoCodeInput,
    PromoWindow,
    is_blank,
)

if TYPE_CHECKING:
    from catalog_api.models.promo_code import PromoCode
    from catalog_api.promo.lookups import PromoCodeLookup

ID_FIELDS = ("sectionId", "categoryId", "productId")

DUPLICATE_CODE_MESSAGE = "Promo code with this code already exists."

REQUIRED_MESSAGES = {
    "code": "Code is required.",
    "scopeType": "scopeType is required.",
    "discountPercent": "discountPercent is required.",
}

_DISCOUNT_RANGE = f"discountPercent must be between {DISCOUNT_MIN} and {DISCOUNT_MAX}."

# pydantic error type -> message, per field
MESSAGES = {
    "code": {
        "string_too_short": f"Code must be at least {CODE_MIN_LENGTH} characters long.",
        "string_too_long": f"Code must not be longer than {CODE_MAX_LENGTH} characters.",
    },
    "description": {
        "string_too_long": f"Description must not be longer than {DESCRIPTION_MAX_LENGTH} characters.",
    },
    "discountPercent": {
        "greater_than_equal": _DISCOUNT_RANGE,
        "less_than_equal": _DISCOUNT_RANGE,
    },
}

# any other failure on the field
FALLBACK_MESSAGES = {
    "code": "Code must be a string.",
    "description": "Description must be a string.",
    "scopeType": f"scopeType must be one of: {', '.join(ScopeType.values())}.",
    "discountPercent": "discountPercent must be a number.",
    "isActive": "isActive must be a boolean (true or false).",
    "startsAt": "startsAt must be a valid datetime in format YYYY-MM-DDTHH:MM.",
    "expiresAt": "expiresAt must be a valid datetime in format YYYY-MM-DDTHH:MM.",
    **{name: f"{name} must be a positive integer." for name in ID_FIELDS},
}


class FieldErrors(dict):
    """field name -> list of messages, in the order they were found."""

    def add(self, field_name: str, message: str) -> None:
        messages = self.setdefault(field_name, [])
        if message not in messages:
            messages.append(message)

    def merge(self, other: Mapping[str, list[str]]) -> None:
        for field_name, messages in other.items():
            for message in messages:
                self.add(field_name, message)


@dataclass
class NormalizedPromoCode:
    code: str
    description: str | None
    scope_type: ScopeType
    discount_percent: Decimal
    is_active: bool
    starts_at: datetime | None
    expires_at: datetime | None
    ids: ScopeIds
    # Filled once the scope relation has been resolved.
    scope: Scope | None = None


@dataclass
class ValidationResult:
    value: NormalizedPromoCode | None = None
    errors: FieldErrors = field(default_factory=FieldErrors)

    @property
    def ok(self) -> bool:
        return not self.errors


def field_errors(exc: ValidationError) -> FieldErrors:
    """Translate pydantic errors into the API's field messages."""
    errors = FieldErrors()
    for error in exc.errors():
        loc = error["loc"]
        name = str(loc[0]) if loc else error["ctx"]["field"]
        if error["type"] == PROMO_RULE:
            message = error["msg"]
        elif error["type"] == "missing":
            message = REQUIRED_MESSAGES.get(name, f"{name} is required.")
        else:
            message = MESSAGES.get(name, {}).get(error["type"]) or FALLBACK_MESSAGES[name]
        errors.add(name, message)
    return errors


def record_state(record: PromoCode) -> dict[str, Any]:
    """The stored record expressed as a payload, for update merges."""
    return {
        "code": record.code,
        "description": record.description,
        "scopeType": record.scope_type.value if record.scope_type else None,
        "discountPercent": record.discount_percent,
        "isActive": record.is_active,
        "startsAt": as_utc(record.starts_at),
        "expiresAt": as_utc(record.expires_at),
        "sectionId": record.section_id,
        "categoryId": record.category_id,
        "productId": record.product_id,
    }


def merge_payload(payload: Mapping[str, Any], record: PromoCode) -> dict[str, Any]:
    merged = record_state(record)
    for key, value in payload.items():
        if key not in merged:
            continue
        # isActive has no "unset" state on a stored record
        if key == "isActive" and value is None:
            continue
        merged[key] = value
    return merged


class PromoCodeValidator:
    def __init__(self, tz: tzinfo | None = None):
        self.tz = tz or ZoneInfo(settings.PROMO_TIMEZONE)

    def validate(self, payload: Mapping[str, Any], existing: PromoCode | None = None) -> ValidationResult:
        data = merge_payload(payload, existing) if existing is not None else dict(payload)
        try:
            fields = PromoCodeInput.model_validate(data, context={"tz": self.tz})
        except ValidationError as exc:
            errors = field_errors(exc)
            errors.merge(self._cross_field_errors(data, errors))
            return ValidationResult(errors=errors)

        return ValidationResult(
            value=NormalizedPromoCode(
                code=fields.code,
                description=fields.description,
                scope_type=fields.scope_type,
                discount_percent=fields.discount_percent,
                is_active=True if fields.is_active is None else fields.is_active,
                starts_at=fields.starts_at,
                expires_at=fields.expires_at,
                ids=fields.ids,
            )
        )

    def _cross_field_errors(self, data: Mapping[str, Any], errors: FieldErrors) -> FieldErrors:
        """Rules spanning fields, applied to whichever of those fields are valid.

        pydantic skips model validators once a field fails, but these rules
        are reported alongside unrelated field errors.
        """
        found = FieldErrors()

        scope_type = ScopeType.parse(data.get("scopeType"))
        required = scope_field(scope_type) if scope_type is not None else None
        if required is not None and required not in errors and is_blank(data.get(required)):
            found.add(required, target_required_message(scope_type))

        if "startsAt" not in errors and "expiresAt" not in errors:
            window = {"startsAt": data.get("startsAt"), "expiresAt": data.get("expiresAt")}
            try:
                PromoWindow.model_validate(window, context={"tz": self.tz})
            except ValidationError as exc:
                found.merge(field_errors(exc))
        return found


def check_code_unique(code: str, lookup: PromoCodeLookup, exclude_id: int | None = None) -> FieldErrors:
    errors = FieldErrors()
    if lookup.find_by_code(code, exclude_id=exclude_id) is not None:
        errors.add("code", DUPLICATE_CODE_MESSAGE)
    return errors
