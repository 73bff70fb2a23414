"""Services for Cellarbook."""

from cellarbook.services.catalog import CatalogStore
from cellarbook.services.errors import (
    BottleValidationError,
    CellarbookError,
    IngestError,
    PersistenceError,
)
from cellarbook.services.inventory import InventoryStore

__all__ = [
    "BottleValidationError",
    "CatalogStore",
    "CellarbookError",
    "IngestError",
    "InventoryStore",
    "PersistenceError",
]
