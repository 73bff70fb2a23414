"""FastAPI application entry point for Cellarbook."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from cellarbook import __version__
from cellarbook.config import settings
from cellarbook.database import close_db, init_db
from cellarbook.services.catalog import CatalogStore
from cellarbook.services.errors import BottleValidationError, IngestError, PersistenceError
from cellarbook.services.inventory import InventoryStore

logger = logging.getLogger(__name__)


def build_limiter(per_minute: int) -> Limiter:
    """Per-client limiter applying ``per_minute`` requests to every route."""
    return Limiter(key_func=get_remote_address, default_limits=[f"{per_minute}/minute"])


# Rate limiter configuration
limiter = build_limiter(settings.rate_limit_per_minute)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'; base-uri 'none';"
        )

        # HTTPS enforcement header (browsers will upgrade to HTTPS)
        if settings.enforce_https:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        return response


def create_stores(app: FastAPI) -> None:
    """Attach the inventory and catalog stores to the application state."""
    app.state.inventory_store = InventoryStore(settings.vintage_categories)
    app.state.catalog_store = CatalogStore(settings.catalog_source_path)


async def _refresh_catalog_on_startup(store: CatalogStore) -> None:
    """Load the catalog source; a failure leaves the previous catalog in place."""
    try:
        result = await store.refresh()
    except (IngestError, PersistenceError) as e:
        logger.error("Startup catalog refresh failed, serving previous catalog: %s", e)
        return
    logger.info(
        "Startup catalog refresh: %d entries (%d skipped)", result.entries, result.skipped
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    logging.getLogger("cellarbook").setLevel(settings.log_level)
    await init_db()
    create_stores(app)

    if settings.catalog_refresh_on_startup:
        await _refresh_catalog_on_startup(app.state.catalog_store)

    yield

    # Shutdown
    await close_db()


# ============================================================================
# Exception handlers
# ============================================================================


async def bottle_validation_error_handler(
    request: Request, exc: BottleValidationError
) -> JSONResponse:
    """Invalid bottle input is a client error."""
    content = {"detail": exc.message}
    if exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Schema violations in request bodies and parameters map to 400."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Storage failures are reported without storage details."""
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error mapping shared by the app and the test app."""
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(BottleValidationError, bottle_validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(PersistenceError, persistence_error_handler)


app = FastAPI(
    title=settings.app_name,
    description="Beverage cellar inventory with a searchable reference catalog",
    version=__version__,
    lifespan=lifespan,
)

# Add rate limiter
app.state.limiter = limiter
register_exception_handlers(app)
app.add_middleware(SlowAPIMiddleware)

# Only allow origins from the whitelist; empty list means same-origin only
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,  # Cache preflight for 10 minutes
    )

app.add_middleware(SecurityHeadersMiddleware)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "healthy",
            "version": __version__,
            "app_name": settings.app_name,
        }
    )


# Import and include routers
from cellarbook.routers import auth, bottles, catalog  # noqa: E402

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(bottles.router, prefix="/api/wines", tags=["Wines"])
app.include_router(catalog.router, prefix="/api/catalog", tags=["Catalog"])
