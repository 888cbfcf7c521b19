from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response
from sqlalchemy.orm import Session

from catalog_api.api.deps import EntityId, require_admin
from catalog_api.core.db import get_db
from catalog_api.core.errors import CatalogError
from catalog_api.services import promo_store
from catalog_api.services.pagination import paginate

router = APIRouter(prefix="/api/promocodes", tags=["PromoCodes"])


def _object_body(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise CatalogError("Invalid JSON body.")
    return payload


def _flag(value: str | None) -> int | None:
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


@router.get("", dependencies=[Depends(require_admin)])
def list_promo_codes(
    page: int = 1,
    limit: int | None = None,
    search: str | None = None,
    scope_type: str | None = Query(default=None, alias="scopeType"),
    is_active: str | None = Query(default=None, alias="isActive"),
    is_expired: str | None = Query(default=None, alias="isExpired"),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_dir: str = Query(default="desc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    active = _flag(is_active)
    query = promo_store.filtered_query(
        db,
        search=search,
        scope_type=scope_type,
        is_active=None if active is None else bool(active),
        is_expired=_flag(is_expired),
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return paginate(query, page, limit, promo_store.serialize_promo)


@router.post("/verify")
def verify_promo_code(payload: Any = Body(default=None), db: Session = Depends(get_db)):
    code = payload.get("code") if isinstance(payload, dict) else None
    verdict = promo_store.verify_code(db, code)
    return promo_store.serialize_verdict(verdict)


@router.get("/{promo_id}", dependencies=[Depends(require_admin)])
def show_promo_code(promo_id: EntityId, db: Session = Depends(get_db)):
    return promo_store.serialize_promo(promo_store.get_promo_code(db, promo_id))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_promo_code(payload: Any = Body(default=None), db: Session = Depends(get_db)):
    promo = promo_store.create_promo_code(db, _object_body(payload))
    return promo_store.serialize_promo(promo)


@router.patch("/{promo_id}", dependencies=[Depends(require_admin)])
def update_promo_code(promo_id: EntityId, payload: Any = Body(default=None), db: Session = Depends(get_db)):
    promo = promo_store.get_promo_code(db, promo_id)
    promo = promo_store.update_promo_code(db, promo, _object_body(payload))
    return promo_store.serialize_promo(promo)


@router.delete("/{promo_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_promo_code(promo_id: EntityId, db: Session = Depends(get_db)):
    promo_store.delete_promo_code(db, promo_store.get_promo_code(db, promo_id))
    return Response(status_code=204)
