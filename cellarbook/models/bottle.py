"""Bottle document model for a user's inventory."""

from datetime import datetime, timezone
from typing import Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field


class VintageStock(BaseModel):
    """Embedded subdocument holding the stock for one vintage year."""

    vintage: int
    stock: int = Field(default=0, ge=0)


class Bottle(Document):
    """A bottle (or line of bottles) owned by a user."""

    # Integer id assigned from the "bottles" counter before insert
    id: Optional[int] = None

    # Owner reference for data isolation
    owner_id: Indexed(PydanticObjectId)

    name: Indexed(str)
    category: Indexed(str)
    producer: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    wine_type: Optional[str] = None
    sub_type: Optional[str] = None
    image_url: Optional[str] = None

    # Per-year breakdown (newest first) and its denormalized total
    vintage_stocks: list[VintageStock] = Field(default_factory=list)
    stock_level: int = Field(default=0, ge=0)

    notes: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=1, le=5)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "bottles"
        indexes = [
            "owner_id",
            "name",
            "category",
            [("owner_id", 1), ("category", 1)],  # Compound index for category listings
        ]

    def __repr__(self) -> str:
        return f"<Bottle(id={self.id}, name={self.name}, category={self.category}, stock={self.stock_level})>"
