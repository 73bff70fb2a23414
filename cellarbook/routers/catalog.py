"""Reference catalog endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Query, status

from cellarbook.schemas.catalog import CatalogEntryResponse, CatalogRefreshResult, CatalogStats
from cellarbook.services.auth import RequireAdmin
from cellarbook.services.errors import IngestError

from ._common import CatalogStoreDep

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[CatalogEntryResponse])
async def list_catalog(
    store: CatalogStoreDep,
) -> list[CatalogEntryResponse]:
    """Return every catalog entry."""
    entries = await store.list_all()
    return [CatalogEntryResponse.model_validate(e) for e in entries]


@router.get("/search", response_model=list[CatalogEntryResponse])
async def search_catalog(
    store: CatalogStoreDep,
    q: str = Query("", max_length=200, description="Text to find in name or producer"),
) -> list[CatalogEntryResponse]:
    """Case-insensitive substring search. An empty query returns nothing."""
    entries = await store.search(q)
    return [CatalogEntryResponse.model_validate(e) for e in entries]


@router.get("/stats", response_model=CatalogStats)
async def catalog_stats(
    store: CatalogStoreDep,
) -> CatalogStats:
    """Entry count and last refresh details."""
    return await store.stats()


@router.post("/refresh", response_model=CatalogRefreshResult)
async def refresh_catalog(
    admin: RequireAdmin,
    store: CatalogStoreDep,
) -> CatalogRefreshResult:
    """Reload the catalog from its configured source file (admin only)."""
    logger.info("Catalog refresh requested by user_id=%s", admin.id)
    try:
        return await store.refresh()
    except IngestError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Catalog source could not be loaded",
        ) from e
