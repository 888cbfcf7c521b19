import logging
import re
import unicodedata
from datetime import datetime, timezone

from pydantic.alias_generators import to_camel
from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from catalog_api.core.errors import Conflict, NotFound, ValidationFailed
from catalog_api.models.category import Category
from catalog_api.models.product import Product, ProductStatus
from catalog_api.models.promo_code import PromoCode
from catalog_api.models.section import Section
from catalog_api.schemas.catalog import (
    CategoryCreate, CategoryUpdate, ProductCreate, ProductUpdate, SectionCreate, SectionUpdate,
)

logger = logging.getLogger(__name__)


# -------------------------
# Slugs
# -------------------------

def slugify(value: str) -> str:
    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value.lower())
    return value.strip("-") or "item"


def unique_slug(db: Session, model, title: str, exclude_id: int | None = None) -> str:
    base = slugify(title)
    slug, n = base, 2
    while True:
        query = db.query(model.id).filter(model.slug == slug)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first() is None:
            return slug
        slug = f"{base}-{n}"
        n += 1


# -------------------------
# Shared helpers
# -------------------------

def get_or_404(db: Session, model, entity_id: int, label: str):
    entity = db.get(model, entity_id)
    if entity is None:
        raise NotFound(f"{label} not found.")
    return entity


def _require(db: Session, model, entity_id: int, field: str, label: str) -> None:
    if db.get(model, entity_id) is None:
        raise ValidationFailed({field: [f"{label} not found."]})


def _save(db: Session, entity, fields: dict):
    for name, value in fields.items():
        setattr(entity, name, value)
    if entity.id is None:
        db.add(entity)
    else:
        entity.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(entity)
    return entity


def _reject_nulls(fields: dict, *names: str) -> None:
    # PATCH may omit a non-nullable column but not clear it
    errors = {
        to_camel(name): [f"{to_camel(name)} is required."]
        for name in names
        if name in fields and fields[name] is None
    }
    if errors:
        raise ValidationFailed(errors)


def _ensure_unreferenced(db: Session, label: str, references: dict[str, Query]) -> None:
    in_use = [name for name, query in references.items() if query.first() is not None]
    if in_use:
        raise Conflict(f"{label} is still referenced by {', '.join(in_use)}.")


def _contains(search: str, *columns):
    """Case-insensitive substring match on any of ``columns``."""
    like = f"%{search.strip()[:255].lower()}%"
    return or_(*(func.lower(column).like(like) for column in columns))


# -------------------------
# Sections
# -------------------------

def list_sections(db: Session, search: str | None = None) -> Query:
    query = db.query(Section)
    if search and search.strip():
        query = query.filter(_contains(search, Section.title, Section.slug))
    return query.order_by(Section.title.asc(), Section.id.asc())


def create_section(db: Session, data: SectionCreate) -> Section:
    fields = data.model_dump()
    fields["slug"] = unique_slug(db, Section, data.title)
    section = _save(db, Section(), fields)
    logger.info("Created section %s (id=%s)", section.slug, section.id)
    return section


def update_section(db: Session, section: Section, data: SectionUpdate) -> Section:
    fields = data.model_dump(exclude_unset=True)
    _reject_nulls(fields, "title", "is_active")
    if "title" in fields:
        fields["slug"] = unique_slug(db, Section, fields["title"], exclude_id=section.id)
    return _save(db, section, fields)


def delete_section(db: Session, section: Section) -> None:
    _ensure_unreferenced(db, "Section", {
        "categories": db.query(Category.id).filter(Category.section_id == section.id),
        "promo codes": db.query(PromoCode.id).filter(PromoCode.section_id == section.id),
    })
    db.delete(section)
    db.commit()
    logger.info("Deleted section %s (id=%s)", section.slug, section.id)


# -------------------------
# Categories
# -------------------------

def list_categories(db: Session, section_id: int | None = None, search: str | None = None) -> Query:
    query = db.query(Category)
    if section_id is not None:
        query = query.filter(Category.section_id == section_id)
    if search and search.strip():
        query = query.filter(_contains(search, Category.title, Category.slug))
    return query.order_by(Category.title.asc(), Category.id.asc())


def create_category(db: Session, data: CategoryCreate) -> Category:
    _require(db, Section, data.section_id, "sectionId", "Section")
    fields = data.model_dump()
    fields["slug"] = unique_slug(db, Category, data.title)
    category = _save(db, Category(), fields)
    logger.info("Created category %s (id=%s)", category.slug, category.id)
    return category


def update_category(db: Session, category: Category, data: CategoryUpdate) -> Category:
    fields = data.model_dump(exclude_unset=True)
    _reject_nulls(fields, "title", "section_id", "is_active")
    if "section_id" in fields:
        _require(db, Section, fields["section_id"], "sectionId", "Section")
    if "title" in fields:
        fields["slug"] = unique_slug(db, Category, fields["title"], exclude_id=category.id)
    return _save(db, category, fields)


def delete_category(db: Session, category: Category) -> None:
    _ensure_unreferenced(db, "Category", {
        "products": db.query(Product.id).filter(Product.category_id == category.id),
        "promo codes": db.query(PromoCode.id).filter(PromoCode.category_id == category.id),
    })
    db.delete(category)
    db.commit()
    logger.info("Deleted category %s (id=%s)", category.slug, category.id)


# -------------------------
# Products
# -------------------------

PRODUCT_SORT_COLUMNS = {
    "createdAt": Product.created_at,
    "price": Product.price,
    "title": Product.title,
}


def list_products(
    db: Session,
    category_id: int | None = None,
    status: ProductStatus | None = None,
    search: str | None = None,
    section_id: int | None = None,
    is_active: bool | None = None,
    sort_by: str = "createdAt",
    sort_dir: str = "desc",
) -> Query:
    query = db.query(Product)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if section_id is not None:
        query = query.join(Product.category).filter(Category.section_id == section_id)
    if status is not None:
        query = query.filter(Product.status == status)
    if is_active is not None:
        query = query.filter(Product.is_active == is_active)
    if search and search.strip():
        query = query.filter(_contains(search, Product.title, Product.description))

    # Unknown sort keys fall back to newest first
    column = PRODUCT_SORT_COLUMNS.get(sort_by, Product.created_at)
    if (sort_dir or "").lower() == "asc":
        return query.order_by(column.asc(), Product.id.asc())
    return query.order_by(column.desc(), Product.id.desc())


def create_product(db: Session, data: ProductCreate) -> Product:
    _require(db, Category, data.category_id, "categoryId", "Category")
    fields = data.model_dump()
    fields["slug"] = unique_slug(db, Product, data.title)
    product = _save(db, Product(), fields)
    logger.info("Created product %s (id=%s)", product.slug, product.id)
    return product


def update_product(db: Session, product: Product, data: ProductUpdate) -> Product:
    fields = data.model_dump(exclude_unset=True)
    _reject_nulls(fields, "title", "price", "status", "category_id", "is_active")
    if "category_id" in fields:
        _require(db, Category, fields["category_id"], "categoryId", "Category")
    if "title" in fields:
        fields["slug"] = unique_slug(db, Product, fields["title"], exclude_id=product.id)
    return _save(db, product, fields)


def delete_product(db: Session, product: Product) -> None:
    _ensure_unreferenced(db, "Product", {
        "promo codes": db.query(PromoCode.id).filter(PromoCode.product_id == product.id),
    })
    db.delete(product)
    db.commit()
    logger.info("Deleted product %s (id=%s)", product.slug, product.id)
