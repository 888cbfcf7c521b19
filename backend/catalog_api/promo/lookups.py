"""Read-only collaborators the promo engine queries.

The engine never runs queries itself; callers hand in an object satisfying
these protocols (``catalog_api.services.promo_store.SqlLookups`` in the app,
plain in-memory fakes in tests).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from catalog_api.models.category import Category
    from catalog_api.models.product import Product
    from catalog_api.models.promo_code import PromoCode
    from catalog_api.models.section import Section


class CatalogLookups(Protocol):
    def find_section_by_id(self, section_id: int) -> Section | None: ...

    def find_category_by_id(self, category_id: int) -> Category | None: ...

    def find_product_by_id(self, product_id: int) -> Product | None: ...


class PromoCodeLookup(Protocol):
    def find_by_code(self, code: str, exclude_id: int | None = None) -> PromoCode | None:
        """Case-insensitive exact match on ``code``, skipping ``exclude_id``."""
        ...


class PromoLookups(CatalogLookups, PromoCodeLookup, Protocol):
    pass
