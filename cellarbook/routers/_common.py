"""Shared dependencies for API routers."""

from typing import Annotated

from fastapi import Depends, Request

from cellarbook.services.catalog import CatalogStore
from cellarbook.services.inventory import InventoryStore


def get_inventory_store(request: Request) -> InventoryStore:
    """Return the inventory store created at application startup."""
    return request.app.state.inventory_store


def get_catalog_store(request: Request) -> CatalogStore:
    """Return the catalog store created at application startup."""
    return request.app.state.catalog_store


InventoryStoreDep = Annotated[InventoryStore, Depends(get_inventory_store)]
CatalogStoreDep = Annotated[CatalogStore, Depends(get_catalog_store)]
