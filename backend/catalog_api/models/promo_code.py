from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Integer, String, Numeric, Boolean, Text, DateTime, ForeignKey, Enum,
    CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from catalog_api.core.db import Base
from catalog_api.promo.scope import (
    ScopeType, Scope, StorewideScope, SectionScope, CategoryScope, ProductScope,
)

# Mirrors the scope variants: exactly the relation matching scope_type is set.
SCOPE_RELATION_CHECK = (
    "(scope_type = 'all' AND section_id IS NULL AND category_id IS NULL AND product_id IS NULL)"
    " OR (scope_type = 'section' AND section_id IS NOT NULL AND category_id IS NULL AND product_id IS NULL)"
    " OR (scope_type = 'category' AND section_id IS NULL AND category_id IS NOT NULL AND product_id IS NULL)"
    " OR (scope_type = 'product' AND section_id IS NULL AND category_id IS NULL AND product_id IS NOT NULL)"
)


def fold_code(code: str) -> str:
    """Comparison key for promo codes, identical on every database backend."""
    return code.strip().casefold()


class PromoCode(Base):
    __tablename__ = "promo_codes"
    __table_args__ = (
        CheckConstraint(SCOPE_RELATION_CHECK, name="ck_promo_codes_scope_relation"),
        CheckConstraint(
            "discount_percent >= 0 AND discount_percent <= 100",
            name="ck_promo_codes_discount_range",
        ),
        # Storage-level guard for case-insensitive uniqueness.
        Index("uq_promo_codes_code_normalized", "code_normalized", unique=True),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(64))
    # casefold() can expand a character, so this is wider than code
    code_normalized: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    scope_type: Mapped[ScopeType] = mapped_column(
        Enum(
            ScopeType,
            native_enum=False,
            length=16,
            values_callable=lambda e: [m.value for m in e],
        ),
        index=True,
    )
    section_id: Mapped[int | None] = mapped_column(ForeignKey("sections.id"), nullable=True, index=True)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True, index=True)
    product_id: Mapped[int | None] = mapped_column(ForeignKey("products.id"), nullable=True, index=True)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0.00"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    starts_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc)
    )

    section = relationship("Section")
    category = relationship("Category")
    product = relationship("Product")

    @validates("code")
    def _keep_code_normalized(self, key, value):
        self.code_normalized = fold_code(value) if value is not None else None
        return value

    @property
    def scope(self) -> Scope:
        if self.scope_type == ScopeType.SECTION:
            return SectionScope(self.section)
        if self.scope_type == ScopeType.CATEGORY:
            return CategoryScope(self.category)
        if self.scope_type == ScopeType.PRODUCT:
            return ProductScope(self.product)
        return StorewideScope()
