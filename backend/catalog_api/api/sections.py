from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from catalog_api.api.deps import EntityId, require_admin
from catalog_api.core.db import get_db
from catalog_api.models.section import Section
from catalog_api.schemas.catalog import SectionCreate, SectionOut, SectionUpdate
from catalog_api.services import catalog
from catalog_api.services.pagination import paginate

router = APIRouter(prefix="/api/sections", tags=["Sections"])


def _out(section: Section) -> dict:
    return SectionOut.model_validate(section).model_dump(mode="json", by_alias=True)


@router.get("")
def list_sections(
    page: int = 1,
    limit: int | None = None,
    q: str | None = None,
    search: str | None = None,
    db: Session = Depends(get_db),
):
    return paginate(catalog.list_sections(db, q or search), page, limit, _out)


@router.get("/{section_id}")
def show_section(section_id: EntityId, db: Session = Depends(get_db)):
    return _out(catalog.get_or_404(db, Section, section_id, "Section"))


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
def create_section(data: SectionCreate, db: Session = Depends(get_db)):
    return _out(catalog.create_section(db, data))


@router.patch("/{section_id}", dependencies=[Depends(require_admin)])
def update_section(section_id: EntityId, data: SectionUpdate, db: Session = Depends(get_db)):
    section = catalog.get_or_404(db, Section, section_id, "Section")
    return _out(catalog.update_section(db, section, data))


@router.delete("/{section_id}", status_code=204, dependencies=[Depends(require_admin)])
def delete_section(section_id: EntityId, db: Session = Depends(get_db)):
    catalog.delete_section(db, catalog.get_or_404(db, Section, section_id, "Section"))
    return Response(status_code=204)
