"""Pydantic schemas for Cellarbook API."""

from cellarbook.schemas.bottle import (
    BottleCreate,
    BottleResponse,
    BottleUpdate,
    CellarSummary,
    VintageStockAdd,
    VintageStockSchema,
)
from cellarbook.schemas.catalog import CatalogEntryResponse, CatalogRefreshResult, CatalogStats

__all__ = [
    "BottleCreate",
    "BottleUpdate",
    "BottleResponse",
    "CellarSummary",
    "VintageStockAdd",
    "VintageStockSchema",
    "CatalogEntryResponse",
    "CatalogRefreshResult",
    "CatalogStats",
]
