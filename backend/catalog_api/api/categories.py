from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from catalog_api.api.deps import EntityId, require_admin
from catalog_api.core.db import MAX_ID, get_db
from catalog_api.models.category import Category
from catalog_api.schemas.catalog import CategoryCreate, CategoryOut, CategoryUpdate
from catalog_api.services import catalog
from catalog_api.services.pagination import paginate

router = APIRouter(prefix="/api/categories", tags=["Categories"])


def _out(category: Category) -> dict:
    return CategoryOut.model_validate(category).model_dump(mode="json", by_alias=True)


@router.get("")
def list_categories(
    page: int = 1,
    limit: int | None = None,
    q: str | None = None,
    search: str | None = None,
    section_id: int | None = Query(default=None, alias="sectionId", ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
):
    return paginate(catalog.list_categories(db, section_id, q or search), page, limit, _out)


@router.get("/{category_id}")
def show_category(category_id: EntityId, db: Session = Depends(get_db)):
    return _out(catalog.get_or_404(db, Category, category_id, "Category"))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_category(data: CategoryCreate, db: Session = Depends(get_db)):
    return _out(catalog.create_category(db, data))


@router.patch("/{category_id}", dependencies=[Depends(require_admin)])
def update_category(category_id: EntityId, data: CategoryUpdate, db: Session = Depends(get_db)):
    category = catalog.get_or_404(db, Category, category_id, "Category")
    return _out(catalog.update_category(db, category, data))


@router.delete("/{category_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_category(category_id: EntityId, db: Session = Depends(get_db)):
    catalog.delete_category(db, catalog.get_or_404(db, Category, category_id, "Category"))
    return Response(status_code=204)
