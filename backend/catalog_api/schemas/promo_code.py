"""Request models for promo code payloads.

Field failures keep pydantic's own error types; ``promo.validator`` maps
them onto the API's messages. Rules that span fields raise ``PROMO_RULE``
errors whose context names the field they are reported under.
"""

import re
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic_core import PydanticCustomError

from catalog_api.core.config import settings
from catalog_api.core.db import MAX_ID
from catalog_api.promo.scope import ScopeIds, ScopeType, scope_field, target_required_message
from catalog_api.schemas.catalog import CamelModel

CODE_MIN_LENGTH = 2
CODE_MAX_LENGTH = 64
DESCRIPTION_MAX_LENGTH = 5000
DISCOUNT_MIN = Decimal("0")
DISCOUNT_MAX = Decimal("100")
TWO_PLACES = Decimal("0.01")

DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")

PROMO_RULE = "promo_rule"
EXPIRY_BEFORE_START = "expiresAt must be greater than or equal to startsAt."


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class PromoWindow(CamelModel):
    """The optional validity window, read as local wall-clock minutes."""

    # payload keys are camelCase only
    model_config = ConfigDict(populate_by_name=False)

    starts_at: datetime | None = None
    expires_at: datetime | None = None

    @field_validator("starts_at", "expires_at", mode="before")
    @classmethod
    def _minutes_format(cls, value: Any) -> Any:
        if is_blank(value):
            return None
        if isinstance(value, datetime):
            return value
        if not isinstance(value, str) or not DATETIME_RE.match(value.strip()):
            raise PydanticCustomError("datetime_format", "Expected YYYY-MM-DDTHH:MM")
        return value.strip()

    @field_validator("starts_at", "expires_at")
    @classmethod
    def _as_utc(cls, value: datetime | None, info: ValidationInfo) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            tz = (info.context or {}).get("tz") or ZoneInfo(settings.PROMO_TIMEZONE)
            value = value.replace(tzinfo=tz)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _expiry_not_before_start(self) -> "PromoWindow":
        if self.starts_at is not None and self.expires_at is not None and self.expires_at < self.starts_at:
            raise PydanticCustomError(PROMO_RULE, EXPIRY_BEFORE_START, {"field": "expiresAt"})
        return self


class PromoCodeInput(PromoWindow):
    code: str = Field(min_length=CODE_MIN_LENGTH, max_length=CODE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    scope_type: ScopeType
    discount_percent: Decimal = Field(ge=DISCOUNT_MIN, le=DISCOUNT_MAX, allow_inf_nan=False)
    is_active: bool | None = None
    section_id: int | None = Field(default=None, gt=0, le=MAX_ID)
    category_id: int | None = Field(default=None, gt=0, le=MAX_ID)
    product_id: int | None = Field(default=None, gt=0, le=MAX_ID)

    @field_validator("code", mode="before")
    @classmethod
    def _code_present(cls, value: Any) -> Any:
        if is_blank(value):
            raise PydanticCustomError("missing", "Field required")
        return value

    @field_validator("scope_type", mode="before")
    @classmethod
    def _scope_type_name(cls, value: Any) -> Any:
        if is_blank(value):
            raise PydanticCustomError("missing", "Field required")
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("discount_percent", mode="before")
    @classmethod
    def _discount_number(cls, value: Any) -> Any:
        if is_blank(value):
            raise PydanticCustomError("missing", "Field required")
        if isinstance(value, bool):
            raise PydanticCustomError("decimal_type", "Decimal input should be a number")
        return value

    @field_validator("section_id", "category_id", "product_id", mode="before")
    @classmethod
    def _id_value(cls, value: Any) -> Any:
        if is_blank(value):
            return None
        if isinstance(value, bool):
            raise PydanticCustomError("int_type", "Input should be a valid integer")
        return value.strip() if isinstance(value, str) else value

    @field_validator("description")
    @classmethod
    def _empty_description_is_none(cls, value: str | None) -> str | None:
        return value or None

    @field_validator("discount_percent")
    @classmethod
    def _two_places(cls, value: Decimal) -> Decimal:
        return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    @model_validator(mode="after")
    def _scope_target_present(self) -> "PromoCodeInput":
        required = scope_field(self.scope_type)
        provided = {"sectionId": self.section_id, "categoryId": self.category_id, "productId": self.product_id}
        if required is not None and provided[required] is None:
            raise PydanticCustomError(PROMO_RULE, target_required_message(self.scope_type), {"field": required})
        return self

    @property
    def ids(self) -> ScopeIds:
        return ScopeIds(self.section_id, self.category_id, self.product_id)
