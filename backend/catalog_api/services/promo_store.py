import logging
from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from catalog_api.core.errors import NotFound
from catalog_api.models.category import Category
from catalog_api.models.product import Product
from catalog_api.models.promo_code import PromoCode, fold_code
from catalog_api.models.section import Section
from catalog_api.promo.clock import as_utc, utcnow
from catalog_api.promo.scope import ScopeType
from catalog_api.promo.service import PromoCodeValidationError, apply_promo_code, validate_and_build
from catalog_api.promo.validator import DUPLICATE_CODE_MESSAGE
from catalog_api.promo.verification import Verdict, VerificationEngine

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "createdAt": PromoCode.created_at,
    "startsAt": PromoCode.starts_at,
    "expiresAt": PromoCode.expires_at,
}


class SqlLookups:
    """Promo engine collaborators backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find_section_by_id(self, section_id: int) -> Section | None:
        return self.db.get(Section, section_id)

    def find_category_by_id(self, category_id: int) -> Category | None:
        return self.db.get(Category, category_id)

    def find_product_by_id(self, product_id: int) -> Product | None:
        return self.db.get(Product, product_id)

    def find_by_code(self, code: str, exclude_id: int | None = None) -> PromoCode | None:
        query = self.db.query(PromoCode).filter(PromoCode.code_normalized == fold_code(code))
        if exclude_id is not None:
            query = query.filter(PromoCode.id != exclude_id)
        return query.first()


# -------------------------
# Serialization
# -------------------------

def _iso(value: datetime | None) -> str | None:
    value = as_utc(value)
    return value.isoformat() if value else None


def _ref(entity) -> dict | None:
    if entity is None:
        return None
    return {"id": entity.id, "title": entity.title}


def serialize_promo(promo: PromoCode) -> dict:
    return {
        "id": promo.id,
        "code": promo.code,
        "description": promo.description,
        "scopeType": promo.scope_type.value,
        "discountPercent": f"{promo.discount_percent:.2f}",
        "isActive": promo.is_active,
        "startsAt": _iso(promo.starts_at),
        "expiresAt": _iso(promo.expires_at),
        "section": _ref(promo.section),
        "category": _ref(promo.category),
        "product": _ref(promo.product),
        "createdAt": _iso(promo.created_at),
        "updatedAt": _iso(promo.updated_at),
    }


def serialize_verdict(verdict: Verdict) -> dict:
    out: dict[str, Any] = {"valid": verdict.valid, "reason": verdict.reason.value}
    if verdict.record is not None:
        out["promo"] = serialize_promo(verdict.record)
    return out


# -------------------------
# Queries
# -------------------------

def filtered_query(
    db: Session,
    search: str | None = None,
    scope_type: str | None = None,
    is_active: bool | None = None,
    is_expired: int | None = None,
    sort_by: str = "createdAt",
    sort_dir: str = "desc",
    now: datetime | None = None,
) -> Query:
    query = db.query(PromoCode)

    term = (search or "").strip()
    if term:
        query = query.filter(
            or_(
                PromoCode.code_normalized.like(f"%{fold_code(term)}%"),
                func.lower(PromoCode.description).like(f"%{term.lower()}%"),
            )
        )

    # Unknown scope types are ignored rather than rejected
    parsed_scope = ScopeType.parse(scope_type) if scope_type else None
    if parsed_scope is not None:
        query = query.filter(PromoCode.scope_type == parsed_scope)

    if is_active is not None:
        query = query.filter(PromoCode.is_active == is_active)

    now = now or utcnow()
    if is_expired == 1:
        query = query.filter(PromoCode.expires_at.is_not(None), PromoCode.expires_at < now)
    elif is_expired == 0:
        query = query.filter(or_(PromoCode.expires_at.is_(None), PromoCode.expires_at >= now))

    column = SORTABLE_COLUMNS.get(sort_by, PromoCode.created_at)
    ordering = column.asc() if (sort_dir or "").lower() == "asc" else column.desc()
    return query.order_by(ordering, PromoCode.id.desc())


def get_promo_code(db: Session, promo_id: int) -> PromoCode:
    promo = db.get(PromoCode, promo_id)
    if promo is None:
        raise NotFound("Promo code not found.")
    return promo


# -------------------------
# Mutations
# -------------------------

def _flush(db: Session, promo: PromoCode) -> None:
    """Commit, mapping a lost race on the code index to the usual field error."""
    code, promo_id = promo.code, promo.id
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if SqlLookups(db).find_by_code(code, exclude_id=promo_id) is not None:
            raise PromoCodeValidationError({"code": [DUPLICATE_CODE_MESSAGE]})
        raise
    db.refresh(promo)


def create_promo_code(db: Session, payload: Mapping[str, Any]) -> PromoCode:
    normalized = validate_and_build(payload, SqlLookups(db))
    promo = apply_promo_code(PromoCode(), normalized)
    db.add(promo)
    _flush(db, promo)
    logger.info("Created promo code %s (id=%s, scope=%s)", promo.code, promo.id, promo.scope_type.value)
    return promo


def update_promo_code(db: Session, promo: PromoCode, payload: Mapping[str, Any]) -> PromoCode:
    normalized = validate_and_build(payload, SqlLookups(db), existing=promo)
    apply_promo_code(promo, normalized)
    _flush(db, promo)
    logger.info("Updated promo code %s (id=%s, scope=%s)", promo.code, promo.id, promo.scope_type.value)
    return promo


def delete_promo_code(db: Session, promo: PromoCode) -> None:
    db.delete(promo)
    db.commit()
    logger.info("Deleted promo code %s (id=%s)", promo.code, promo.id)


def verify_code(db: Session, code: Any) -> Verdict:
    return VerificationEngine(SqlLookups(db)).verify(code)
