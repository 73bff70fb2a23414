"""Beverage categories and the vintage-tracking policy."""

import enum
from collections.abc import Collection


class BeverageCategory(str, enum.Enum):
    """Category of a bottle or catalog entry."""

    RED = "Red"
    WHITE = "White"
    ROSE = "Rose"
    FORTIFIED = "Fortified"
    BEER = "Beer"
    CIDER = "Cider"
    WHISKIES = "Whiskies"
    OTHER = "Other"


# Categories whose stock is kept as a per-year breakdown
DEFAULT_VINTAGE_CATEGORIES: frozenset[BeverageCategory] = frozenset(
    {BeverageCategory.RED, BeverageCategory.WHITE, BeverageCategory.ROSE}
)


def is_vintage_tracked(
    category: BeverageCategory | str,
    vintage_categories: Collection[BeverageCategory] = DEFAULT_VINTAGE_CATEGORIES,
) -> bool:
    """Return True if stock for this category is tracked per vintage year.

    Unknown category strings are never vintage-tracked.
    """
    try:
        return BeverageCategory(category) in vintage_categories
    except ValueError:
        return False
