"""Pydantic schemas for the bottle API."""

from datetime import datetime
from typing import Any

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

from cellarbook.models.bottle import Bottle
from cellarbook.models.category import BeverageCategory


class VintageStockSchema(BaseModel):
    """Stock held for one vintage year."""

    vintage: int = Field(..., ge=1900, description="Vintage year (not in the future)")
    stock: int = Field(0, ge=0)

    model_config = ConfigDict(from_attributes=True)


class BottleBase(BaseModel):
    """Fields shared by create and response schemas."""

    name: str = Field(..., min_length=1, max_length=255)
    category: BeverageCategory
    producer: str | None = Field(None, max_length=255)
    region: str | None = Field(None, max_length=255)
    country: str | None = Field(None, max_length=255)
    wine_type: str | None = Field(None, max_length=255, description="Specific wine, e.g. Cabernet Sauvignon")
    sub_type: str | None = Field(None, max_length=255)
    image_url: str | None = Field(None, max_length=2000)
    notes: str | None = Field(None, max_length=5000, description="Personal tasting notes")
    rating: int | None = Field(None, ge=1, le=5)


class BottleCreate(BottleBase):
    """Schema for adding a bottle to the inventory."""

    vintage_stocks: list[VintageStockSchema] = Field(default_factory=list)
    stock_level: int = Field(0, ge=0, description="Ignored when vintage stocks are given for a vintage category")


class BottleUpdate(BaseModel):
    """Schema for a partial bottle update. Only supplied keys are applied."""

    name: str | None = Field(None, min_length=1, max_length=255)
    category: BeverageCategory | None = None
    producer: str | None = Field(None, max_length=255)
    region: str | None = Field(None, max_length=255)
    country: str | None = Field(None, max_length=255)
    wine_type: str | None = Field(None, max_length=255)
    sub_type: str | None = Field(None, max_length=255)
    image_url: str | None = Field(None, max_length=2000)
    notes: str | None = Field(None, max_length=5000)
    rating: int | None = Field(None, ge=1, le=5)
    vintage_stocks: list[VintageStockSchema] | None = None
    stock_level: int | None = Field(None, ge=0)


class VintageStockAdd(BaseModel):
    """Bottles of one vintage to add to a bottle's stock."""

    vintage: int = Field(..., ge=1900)
    stock: int = Field(1, ge=1)


class BottleResponse(BottleBase):
    """A stored bottle including server-assigned fields."""

    id: int
    owner_id: str
    category: str
    vintage_stocks: list[VintageStockSchema] = []
    stock_level: int
    vintage_tracked: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("owner_id", mode="before")
    @classmethod
    def convert_objectid_to_str(cls, v: Any) -> str:
        """Convert ObjectId to string."""
        if isinstance(v, PydanticObjectId):
            return str(v)
        return v

    @classmethod
    def from_bottle(cls, bottle: Bottle, vintage_tracked: bool) -> "BottleResponse":
        response = cls.model_validate(bottle)
        response.vintage_tracked = vintage_tracked
        return response


class CellarSummary(BaseModel):
    """Bottle totals for the current user."""

    total_bottles: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
