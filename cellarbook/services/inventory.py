"""Inventory store: CRUD over a user's bottles.

The store owns the stock reconciliation rule. Callers never compute
``stock_level`` for vintage-tracked categories; every write recomputes it
from ``vintage_stocks``.

Concurrent updates to the same bottle are last-write-wins: there is no
version field and no conflict detection. Each user edits their own records.
"""

import logging
from collections.abc import Callable, Collection, Mapping
from datetime import datetime, timezone
from typing import Any

from beanie import PydanticObjectId
from pydantic import ValidationError

from cellarbook.models.bottle import Bottle, VintageStock
from cellarbook.models.category import (
    DEFAULT_VINTAGE_CATEGORIES,
    BeverageCategory,
    is_vintage_tracked,
)
from cellarbook.models.counter import Counter
from cellarbook.services.errors import BottleValidationError, persistence_errors
from cellarbook.services.stock import (
    merge_vintage_stocks,
    reconcile_stock_level,
    total_stock,
    validate_vintage,
)

logger = logging.getLogger(__name__)

BOTTLE_SEQUENCE = "bottles"

# Fields a caller may set; id, owner_id and created_at are store-assigned
WRITABLE_FIELDS = frozenset(
    {
        "name",
        "category",
        "producer",
        "region",
        "country",
        "wine_type",
        "sub_type",
        "image_url",
        "vintage_stocks",
        "stock_level",
        "notes",
        "rating",
    }
)
OPTIONAL_TEXT_FIELDS = ("producer", "region", "country", "wine_type", "sub_type", "image_url", "notes")


def parse_bottle_id(value: Any) -> int:
    """Parse a bottle identifier from a path parameter or CLI argument."""
    if isinstance(value, bool):
        raise BottleValidationError("Invalid wine ID", field="id")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise BottleValidationError("Invalid wine ID", field="id") from e


def _validate_category(value: Any) -> str:
    try:
        return BeverageCategory(value).value
    except ValueError as e:
        allowed = ", ".join(c.value for c in BeverageCategory)
        raise BottleValidationError(
            f"Invalid category {value!r}; expected one of: {allowed}", field="category"
        ) from e


def _validate_non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise BottleValidationError(f"{field} must be an integer", field=field)
    if value < 0:
        raise BottleValidationError(f"{field} cannot be negative", field=field)
    return value


def _validate_rating(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise BottleValidationError("Rating must be an integer between 1 and 5", field="rating")
    return value


class InventoryStore:
    """Durable CRUD over Bottle documents, scoped by owner where one is given.

    Created once at application start and shared by request handlers.
    """

    def __init__(
        self,
        vintage_categories: Collection[BeverageCategory] = DEFAULT_VINTAGE_CATEGORIES,
        clock: Callable[[], datetime] | None = None,
    ):
        self.vintage_categories = frozenset(vintage_categories)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def is_vintage_tracked(self, category: BeverageCategory | str) -> bool:
        return is_vintage_tracked(category, self.vintage_categories)

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_bottles(self, owner_id: PydanticObjectId | None = None) -> list[Bottle]:
        """Return all bottles, optionally only those of one owner."""
        with persistence_errors("list"):
            if owner_id is None:
                return await Bottle.find_all().to_list()
            return await Bottle.find(Bottle.owner_id == owner_id).to_list()

    async def get(
        self,
        bottle_id: int,
        owner_id: PydanticObjectId | None = None,
    ) -> Bottle | None:
        """Point lookup. Returns None when the bottle does not exist for this owner."""
        conditions = [Bottle.id == bottle_id]
        if owner_id is not None:
            conditions.append(Bottle.owner_id == owner_id)
        with persistence_errors("get"):
            return await Bottle.find_one(*conditions)

    async def list_by_category(
        self,
        category: str,
        owner_id: PydanticObjectId | None = None,
    ) -> list[Bottle]:
        """Return bottles whose category matches exactly."""
        conditions = [Bottle.category == category]
        if owner_id is not None:
            conditions.append(Bottle.owner_id == owner_id)
        with persistence_errors("list_by_category"):
            return await Bottle.find(*conditions).to_list()

    async def category_totals(self, owner_id: PydanticObjectId) -> dict[str, int]:
        """Total bottle count per category, in category order."""
        bottles = await self.list_bottles(owner_id)
        totals: dict[str, int] = {}
        for bottle in bottles:
            totals[bottle.category] = totals.get(bottle.category, 0) + bottle.stock_level

        order = [c.value for c in BeverageCategory]
        return dict(
            sorted(totals.items(), key=lambda kv: order.index(kv[0]) if kv[0] in order else len(order))
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def _clean(self, fields: Mapping[str, Any], partial: bool) -> dict[str, Any]:
        """Validate caller-supplied fields without touching the database."""
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise BottleValidationError(
                f"Unknown or read-only fields: {', '.join(sorted(unknown))}"
            )

        data: dict[str, Any] = {}

        if "name" in fields or not partial:
            name = fields.get("name")
            if not isinstance(name, str) or not name.strip():
                raise BottleValidationError("Name is required", field="name")
            data["name"] = name.strip()

        if "category" in fields or not partial:
            if fields.get("category") is None:
                raise BottleValidationError("Category is required", field="category")
            data["category"] = _validate_category(fields["category"])

        for field in OPTIONAL_TEXT_FIELDS:
            if field in fields:
                value = fields[field]
                if value is not None and not isinstance(value, str):
                    raise BottleValidationError(f"{field} must be a string", field=field)
                data[field] = value

        if "rating" in fields:
            data["rating"] = _validate_rating(fields["rating"])

        if "stock_level" in fields:
            data["stock_level"] = _validate_non_negative_int(fields["stock_level"], "stock_level")

        if "vintage_stocks" in fields:
            if fields["vintage_stocks"] is None:
                raise BottleValidationError("vintage_stocks cannot be null", field="vintage_stocks")
            data["vintage_stocks"] = merge_vintage_stocks(
                fields["vintage_stocks"], year=self._clock().year
            )

        return data

    async def create(self, fields: Mapping[str, Any], owner_id: PydanticObjectId) -> Bottle:
        """Create a bottle for ``owner_id`` and return the stored record.

        Raises:
            BottleValidationError: If the input is invalid. Nothing is written.
            PersistenceError: If the database fails.
        """
        data = self._clean(fields, partial=False)
        now = self._clock()

        vintage_stocks: list[VintageStock] = data.pop("vintage_stocks", [])
        stock_level: int = data.pop("stock_level", 0)

        # A tracked bottle entered with only a count starts as this year's vintage
        if self.is_vintage_tracked(data["category"]) and not vintage_stocks and stock_level > 0:
            vintage_stocks = [VintageStock(vintage=now.year, stock=stock_level)]

        stock_level = reconcile_stock_level(
            data["category"], vintage_stocks, stock_level, self.vintage_categories
        )

        with persistence_errors("create"):
            bottle_id = await Counter.reserve(BOTTLE_SEQUENCE)
            try:
                bottle = Bottle(
                    id=bottle_id,
                    owner_id=owner_id,
                    vintage_stocks=vintage_stocks,
                    stock_level=stock_level,
                    created_at=now,
                    updated_at=now,
                    **data,
                )
            except ValidationError as e:
                raise BottleValidationError(str(e)) from e
            await bottle.insert()

        logger.info(
            "Created bottle id=%s owner=%s category=%s stock=%d",
            bottle.id, owner_id, bottle.category, bottle.stock_level,
        )
        return bottle

    async def update(
        self,
        bottle_id: int,
        patch: Mapping[str, Any],
        owner_id: PydanticObjectId | None = None,
    ) -> Bottle | None:
        """Apply a partial update. Keys absent from ``patch`` are left untouched.

        Returns:
            The updated bottle, or None if it does not exist.

        Raises:
            BottleValidationError: If the patch is invalid. Nothing is written.
        """
        data = self._clean(patch, partial=True)

        bottle = await self.get(bottle_id, owner_id)
        if bottle is None:
            return None
        if not data:
            return bottle

        category = data.get("category", bottle.category)
        vintage_stocks = data.pop("vintage_stocks", None)
        if vintage_stocks is None:
            vintage_stocks = bottle.vintage_stocks
            vintage_touched = False
        else:
            vintage_touched = True
        stock_level = data.pop("stock_level", bottle.stock_level)

        if vintage_touched and "stock_level" not in patch and self.is_vintage_tracked(category):
            stock_level = total_stock(vintage_stocks)
        else:
            stock_level = reconcile_stock_level(
                category, vintage_stocks, stock_level, self.vintage_categories
            )

        for field, value in data.items():
            setattr(bottle, field, value)
        bottle.vintage_stocks = vintage_stocks
        bottle.stock_level = stock_level
        bottle.updated_at = self._clock()

        with persistence_errors("update"):
            await bottle.save()

        logger.debug("Updated bottle id=%s fields=%s", bottle_id, sorted(patch))
        return bottle

    async def delete(self, bottle_id: int, owner_id: PydanticObjectId | None = None) -> bool:
        """Delete a bottle. Returns False if there was nothing to delete."""
        conditions = [Bottle.id == bottle_id]
        if owner_id is not None:
            conditions.append(Bottle.owner_id == owner_id)

        with persistence_errors("delete"):
            result = await Bottle.find(*conditions).delete()

        deleted = result.deleted_count if result else 0
        if deleted:
            logger.info("Deleted bottle id=%s", bottle_id)
        return deleted > 0

    # =========================================================================
    # Vintage helpers
    # =========================================================================

    async def add_vintage_stock(
        self,
        bottle_id: int,
        vintage: int,
        stock: int,
        owner_id: PydanticObjectId | None = None,
    ) -> Bottle | None:
        """Add bottles of one vintage, merging into an existing entry for that year.

        Raises:
            BottleValidationError: If the vintage is invalid or the bottle's
                category is not vintage-tracked.
        """
        validate_vintage(vintage, stock, self._clock().year)

        bottle = await self.get(bottle_id, owner_id)
        if bottle is None:
            return None
        if not self.is_vintage_tracked(bottle.category):
            raise BottleValidationError(
                f"Category {bottle.category} does not track vintages", field="category"
            )

        entries = [*bottle.vintage_stocks, VintageStock(vintage=vintage, stock=stock)]
        return await self.update(
            bottle_id,
            {"vintage_stocks": [e.model_dump() for e in entries]},
            owner_id,
        )

    async def remove_vintage(
        self,
        bottle_id: int,
        vintage: int,
        owner_id: PydanticObjectId | None = None,
    ) -> Bottle | None:
        """Drop the entry for one vintage year and recompute the total."""
        bottle = await self.get(bottle_id, owner_id)
        if bottle is None:
            return None

        remaining = [e.model_dump() for e in bottle.vintage_stocks if e.vintage != vintage]
        return await self.update(bottle_id, {"vintage_stocks": remaining}, owner_id)
