import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog_api.api import categories, products, promo_codes, sections
from catalog_api.core.config import settings
from catalog_api.core.db import Base, engine
from catalog_api.core.errors import CatalogError
from catalog_api.core.logging_setup import configure_logging

# Import models so Base.metadata knows them
import catalog_api.models  # noqa

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging("catalog_api")
    # Create tables (Alembic optional)
    Base.metadata.create_all(bind=engine)
    if not settings.ADMIN_API_TOKEN:
        logger.warning("ADMIN_API_TOKEN is not set; admin endpoints are open")
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Token"],
    max_age=600,
)

app.include_router(sections.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(promo_codes.router)


@app.exception_handler(CatalogError)
async def handle_catalog_error(request: Request, exc: CatalogError):
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            return JSONResponse(status_code=400, content={"message": "Invalid JSON body."})
        # ("body", "sectionId") -> "sectionId"; ("query", "limit") -> "limit"
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "global", []).append(error.get("msg", "Invalid value."))
    return JSONResponse(
        status_code=422,
        content=jsonable_encoder({"message": "Validation failed.", "errors": errors}),
    )


@app.get("/")
def health():
    return {"status": "ok"}
