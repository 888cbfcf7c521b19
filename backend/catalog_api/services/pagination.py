from typing import Any, Callable

from sqlalchemy.orm import Query

from catalog_api.core.config import settings
from catalog_api.core.db import MAX_ID


def clamp_page(page: int | None, limit: int | None) -> tuple[int, int]:
    limit = max(1, min(settings.PAGE_SIZE_MAX, limit or settings.PAGE_SIZE_DEFAULT))
    # the OFFSET has to fit a 64-bit integer
    page = min(max(1, page or 1), MAX_ID // limit)
    return page, limit


def paginate(query: Query, page: int | None, limit: int | None, serialize: Callable[[Any], Any]) -> dict:
    page, limit = clamp_page(page, limit)
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "items": [serialize(row) for row in rows],
        "total": total,
        "page": page,
        "limit": limit,
    }
