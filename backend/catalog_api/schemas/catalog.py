from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalog_api.core.db import MAX_ID
from catalog_api.models.product import ProductStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


# -------------------------
# Sections
# -------------------------

class SectionCreate(CamelModel):
    title: str = Field(min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    is_active: bool = True


class SectionUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    is_active: bool | None = None


class SectionOut(CamelModel):
    id: int
    title: str
    slug: str
    description: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime | None


# -------------------------
# Categories
# -------------------------

class CategoryCreate(CamelModel):
    title: str = Field(min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    section_id: int = Field(gt=0, le=MAX_ID)
    is_active: bool = True


class CategoryUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    section_id: int | None = Field(default=None, gt=0, le=MAX_ID)
    is_active: bool | None = None


class CategoryOut(CamelModel):
    id: int
    title: str
    slug: str
    description: str | None
    section_id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime | None


# -------------------------
# Products
# -------------------------

class ProductCreate(CamelModel):
    title: str = Field(min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    price: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    discount_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    category_id: int = Field(gt=0, le=MAX_ID)
    status: ProductStatus = ProductStatus.ACTIVE
    is_active: bool = True


class ProductUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=2, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    price: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    discount_price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    category_id: int | None = Field(default=None, gt=0, le=MAX_ID)
    status: ProductStatus | None = None
    is_active: bool | None = None


class ProductOut(CamelModel):
    id: int
    title: str
    slug: str
    description: str | None
    price: Decimal
    discount_price: Decimal | None
    category_id: int
    status: ProductStatus
    is_active: bool
    created_at: datetime
    updated_at: datetime | None
