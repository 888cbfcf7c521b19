from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from catalog_api.api.deps import EntityId, require_admin
from catalog_api.core.db import MAX_ID, get_db
from catalog_api.models.product import Product, ProductStatus
from catalog_api.schemas.catalog import ProductCreate, ProductOut, ProductUpdate
from catalog_api.services import catalog
from catalog_api.services.pagination import paginate

router = APIRouter(prefix="/api/products", tags=["Products"])


def _out(product: Product) -> dict:
    return ProductOut.model_validate(product).model_dump(mode="json", by_alias=True)


@router.get("")
def list_products(
    page: int = 1,
    limit: int | None = None,
    q: str | None = None,
    search: str | None = None,
    category_id: int | None = Query(default=None, alias="categoryId", ge=1, le=MAX_ID),
    section_id: int | None = Query(default=None, alias="sectionId", ge=1, le=MAX_ID),
    status: ProductStatus | None = None,
    is_active: bool | None = Query(default=None, alias="isActive"),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_dir: str = Query(default="desc", alias="sortDir"),
    db: Session = Depends(get_db),
):
    query = catalog.list_products(
        db,
        category_id=category_id,
        status=status,
        search=q or search,
        section_id=section_id,
        is_active=is_active,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return paginate(query, page, limit, _out)


@router.get("/{product_id}")
def show_product(product_id: EntityId, db: Session = Depends(get_db)):
    return _out(catalog.get_or_404(db, Product, product_id, "Product"))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_product(data: ProductCreate, db: Session = Depends(get_db)):
    return _out(catalog.create_product(db, data))


@router.patch("/{product_id}", dependencies=[Depends(require_admin)])
def update_product(product_id: EntityId, data: ProductUpdate, db: Session = Depends(get_db)):
    product = catalog.get_or_404(db, Product, product_id, "Product")
    return _out(catalog.update_product(db, product, data))


@router.delete("/{product_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_product(product_id: EntityId, db: Session = Depends(get_db)):
    catalog.delete_product(db, catalog.get_or_404(db, Product, product_id, "Product"))
    return Response(status_code=204)
