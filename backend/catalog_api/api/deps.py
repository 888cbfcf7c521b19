import secrets
from typing import Annotated

from fastapi import Header, Path

from catalog_api.core.config import settings
from catalog_api.core.db import MAX_ID
from catalog_api.core.errors import Unauthorized

# Path ids outside the key range are rejected before they reach the database
EntityId = Annotated[int, Path(ge=1, le=MAX_ID)]


def require_admin(x_admin_token: str | None = Header(default=None)) -> None:
    # Stand-in for the real auth layer; open when no token is configured
    if not settings.ADMIN_API_TOKEN:
        return
    if not x_admin_token or not secrets.compare_digest(x_admin_token, settings.ADMIN_API_TOKEN):
        raise Unauthorized("Admin token required.")
