"""MongoDB document models for Cellarbook."""

from cellarbook.models.bottle import Bottle, VintageStock
from cellarbook.models.catalog import CatalogEntry, CatalogMetadata
from cellarbook.models.category import (
    DEFAULT_VINTAGE_CATEGORIES,
    BeverageCategory,
    is_vintage_tracked,
)
from cellarbook.models.counter import Counter
from cellarbook.models.user import User

__all__ = [
    # Main documents
    "Bottle",
    "User",
    # Embedded subdocuments
    "VintageStock",
    # Reference catalog
    "CatalogEntry",
    "CatalogMetadata",
    # Sequences
    "Counter",
    # Categories
    "BeverageCategory",
    "DEFAULT_VINTAGE_CATEGORIES",
    "is_vintage_tracked",
]
