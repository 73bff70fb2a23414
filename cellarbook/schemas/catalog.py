"""Pydantic schemas for the reference catalog API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CatalogEntryResponse(BaseModel):
    """A catalog entry used to pre-fill a new bottle."""

    id: int = Field(..., description="Catalog entry ID (changes on every refresh)")
    name: str
    category: str
    producer: str | None = None
    region: str | None = None
    country: str | None = None
    wine_type: str | None = None
    sub_type: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CatalogRefreshResult(BaseModel):
    """Outcome of a catalog refresh."""

    generation: int = Field(..., description="Catalog generation now being served")
    entries: int = Field(0, description="Entries loaded from the source")
    skipped: int = Field(0, description="Malformed rows skipped")
    created_source: bool = Field(False, description="True if an empty source file was created")
    source: str


class CatalogStats(BaseModel):
    """Catalog statistics."""

    entry_count: int = 0
    generation: int | None = None
    source: str | None = None
    refreshed_at: datetime | None = None
