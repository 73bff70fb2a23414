"""Vintage stock reconciliation rules.

Bottles in a vintage-tracked category keep their stock as a per-year list;
``stock_level`` is then a cached sum of that list. All other categories keep
a single scalar ``stock_level``.
"""

from collections.abc import Collection, Iterable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from cellarbook.models.bottle import VintageStock
from cellarbook.models.category import (
    DEFAULT_VINTAGE_CATEGORIES,
    BeverageCategory,
    is_vintage_tracked,
)
from cellarbook.services.errors import BottleValidationError

MIN_VINTAGE = 1900


def current_year(now: datetime | None = None) -> int:
    return (now or datetime.now(timezone.utc)).year


def _strict_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def coerce_vintage_stock(item: VintageStock | Mapping[str, Any]) -> VintageStock:
    """Build a VintageStock from a model or a plain mapping.

    Years and counts must already be integers; strings, floats and booleans
    are rejected rather than converted.
    """
    if isinstance(item, VintageStock):
        return item
    if not isinstance(item, Mapping):
        raise BottleValidationError(f"Invalid vintage entry: {item!r}", field="vintage_stocks")
    vintage = item.get("vintage")
    stock = item.get("stock", 0)
    if not _strict_int(vintage) or not _strict_int(stock):
        raise BottleValidationError(f"Invalid vintage entry: {item!r}", field="vintage_stocks")
    try:
        return VintageStock(vintage=vintage, stock=stock)
    except ValueError as e:
        raise BottleValidationError(f"Invalid vintage entry: {item!r}", field="vintage_stocks") from e


def validate_vintage(vintage: int, stock: int, year: int) -> None:
    """Reject future or implausibly old vintages and negative stock."""
    if vintage > year:
        raise BottleValidationError(
            f"Vintage year {vintage} cannot be later than {year}", field="vintage_stocks"
        )
    if vintage < MIN_VINTAGE:
        raise BottleValidationError(
            f"Vintage year {vintage} is earlier than {MIN_VINTAGE}", field="vintage_stocks"
        )
    if stock < 0:
        raise BottleValidationError(
            f"Stock for vintage {vintage} cannot be negative", field="vintage_stocks"
        )


def merge_vintage_stocks(
    entries: Sequence[VintageStock | Mapping[str, Any]],
    year: int | None = None,
) -> list[VintageStock]:
    """Validate entries and merge duplicate years by summing their stock.

    Returns:
        One entry per year, newest vintage first.
    """
    if not isinstance(entries, (list, tuple)):
        raise BottleValidationError("vintage_stocks must be a list", field="vintage_stocks")
    year = year or current_year()
    merged: dict[int, int] = {}
    for raw in entries:
        entry = coerce_vintage_stock(raw)
        validate_vintage(entry.vintage, entry.stock, year)
        merged[entry.vintage] = merged.get(entry.vintage, 0) + entry.stock

    return [VintageStock(vintage=v, stock=s) for v, s in sorted(merged.items(), reverse=True)]


def total_stock(entries: Iterable[VintageStock]) -> int:
    return sum(entry.stock for entry in entries)


def reconcile_stock_level(
    category: BeverageCategory | str,
    vintage_stocks: list[VintageStock],
    stock_level: int,
    vintage_categories: Collection[BeverageCategory] = DEFAULT_VINTAGE_CATEGORIES,
) -> int:
    """Return the stock level a record must carry.

    For vintage-tracked categories with at least one vintage entry the total is
    derived from the entries; otherwise the scalar ``stock_level`` stands.
    """
    if is_vintage_tracked(category, vintage_categories) and vintage_stocks:
        return total_stock(vintage_stocks)
    return stock_level
