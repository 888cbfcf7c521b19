"""What a promo code applies to.

A scope is one of four variants. Storewide carries no target; the other
three carry exactly one resolved catalog entity. ``apply_scope`` is the only
writer of a record's scope columns and always assigns all three relations
together, so a record can never hold two targets at once.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, NamedTuple, Union

from catalog_api.core.db import MAX_ID
from catalog_api.core.errors import ValidationFailed

if TYPE_CHECKING:
    from catalog_api.models.category import Category
    from catalog_api.models.product import Product
    from catalog_api.models.promo_code import PromoCode
    from catalog_api.models.section import Section
    from catalog_api.promo.lookups import CatalogLookups


class ScopeType(str, enum.Enum):
    ALL = "all"
    SECTION = "section"
    CATEGORY = "category"
    PRODUCT = "product"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Any) -> ScopeType | None:
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ScopeIds(NamedTuple):
    section_id: int | None = None
    category_id: int | None = None
    product_id: int | None = None


class ScopeError(ValidationFailed):
    """Scope relation could not be resolved; tied to one id field."""

    def __init__(self, field: str, reason: str):
        super().__init__({field: [reason]})
        self.field = field
        self.reason = reason

    def __str__(self) -> str:
        return self.reason


@dataclass(frozen=True)
class StorewideScope:
    scope_type: ClassVar[ScopeType] = ScopeType.ALL

    @property
    def target(self) -> None:
        return None

    def relations(self) -> tuple[None, None, None]:
        return None, None, None


@dataclass(frozen=True)
class SectionScope:
    section: Section
    scope_type: ClassVar[ScopeType] = ScopeType.SECTION

    @property
    def target(self) -> Section:
        return self.section

    def relations(self) -> tuple[Section, None, None]:
        return self.section, None, None


@dataclass(frozen=True)
class CategoryScope:
    category: Category
    scope_type: ClassVar[ScopeType] = ScopeType.CATEGORY

    @property
    def target(self) -> Category:
        return self.category

    def relations(self) -> tuple[None, Category, None]:
        return None, self.category, None


@dataclass(frozen=True)
class ProductScope:
    product: Product
    scope_type: ClassVar[ScopeType] = ScopeType.PRODUCT

    @property
    def target(self) -> Product:
        return self.product

    def relations(self) -> tuple[None, None, Product]:
        return None, None, self.product


Scope = Union[StorewideScope, SectionScope, CategoryScope, ProductScope]


class _Target(NamedTuple):
    field: str
    id_attr: str
    finder: str
    label: str
    variant: type


_TARGETS: dict[ScopeType, _Target] = {
    ScopeType.SECTION: _Target("sectionId", "section_id", "find_section_by_id", "Section", SectionScope),
    ScopeType.CATEGORY: _Target("categoryId", "category_id", "find_category_by_id", "Category", CategoryScope),
    ScopeType.PRODUCT: _Target("productId", "product_id", "find_product_by_id", "Product", ProductScope),
}


def scope_field(scope_type: ScopeType) -> str | None:
    """Payload field holding the target id for ``scope_type`` (None for ALL)."""
    target = _TARGETS.get(scope_type)
    return target.field if target else None


def target_required_message(scope_type: ScopeType) -> str:
    return f"{scope_field(scope_type)} is required for scopeType={scope_type.value}"


class ScopeResolver:
    def __init__(self, lookups: CatalogLookups):
        self.lookups = lookups

    def resolve(self, scope_type: ScopeType, ids: ScopeIds) -> Scope:
        if scope_type is ScopeType.ALL:
            return StorewideScope()

        target = _TARGETS[scope_type]
        target_id = getattr(ids, target.id_attr)
        if not target_id or target_id <= 0:
            raise ScopeError(target.field, target_required_message(scope_type))

        # no row can carry a key past the 64-bit range
        entity = getattr(self.lookups, target.finder)(target_id) if target_id <= MAX_ID else None
        if entity is None:
            raise ScopeError(target.field, f"{target.label} not found")
        return target.variant(entity)


def apply_scope(record: PromoCode, scope: Scope) -> None:
    record.scope_type = scope.scope_type
    record.section, record.category, record.product = scope.relations()
