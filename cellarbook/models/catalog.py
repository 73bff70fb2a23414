"""Reference catalog document models.

Catalog entries are read-only reference data used to pre-fill new bottles.
They are rebuilt wholesale on every refresh; a user's own bottles live in
the bottles collection and never reference catalog entries.
"""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed
from pydantic import Field


class CatalogEntry(Document):
    """A known wine from the reference catalog."""

    id: Optional[int] = None

    # Refresh batch this entry belongs to; readers only see the active one
    generation: Indexed(int)

    name: Indexed(str) = ""
    category: str = "Other"
    producer: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    wine_type: Optional[str] = None
    sub_type: Optional[str] = None

    class Settings:
        name = "catalog"
        indexes = [
            "generation",
            "name",
            [("generation", 1), ("producer", 1)],
        ]

    def __repr__(self) -> str:
        return f"<CatalogEntry(id={self.id}, name={self.name}, producer={self.producer})>"


class CatalogMetadata(Document):
    """Catalog key/value metadata (active generation, source, counts)."""

    key: Indexed(str, unique=True)
    value: str
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "catalog_metadata"
        indexes = [
            "key",
        ]

    def __repr__(self) -> str:
        return f"<CatalogMetadata(key={self.key}, value={self.value})>"
