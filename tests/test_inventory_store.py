"""Tests for the inventory store."""

from unittest.mock import patch

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from cellarbook.models import Bottle, User
from cellarbook.models.bottle import VintageStock
from cellarbook.models.category import BeverageCategory
from cellarbook.services.errors import BottleValidationError, PersistenceError
from cellarbook.services.inventory import InventoryStore, parse_bottle_id


def red_wine(**overrides) -> dict:
    fields = {
        "name": "Chateau Margaux",
        "category": "Red",
        "producer": "Chateau Margaux",
        "region": "Bordeaux",
        "country": "France",
        "vintage_stocks": [
            {"vintage": 2015, "stock": 2},
            {"vintage": 2018, "stock": 3},
        ],
    }
    fields.update(overrides)
    return fields


class TestCreate:
    """Tests for creating bottles."""

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        assert isinstance(bottle.id, int)
        assert bottle.id > 0
        assert bottle.owner_id == owner.id
        assert bottle.created_at.year == 2024
        assert bottle.updated_at == bottle.created_at

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, inventory_store: InventoryStore, owner: User) -> None:
        first = await inventory_store.create(red_wine(), owner.id)
        second = await inventory_store.create(red_wine(name="Petrus"), owner.id)
        assert first.id != second.id

    @pytest.mark.asyncio
    async def test_tracked_stock_level_is_vintage_sum(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(stock_level=42), owner.id)

        assert bottle.stock_level == 5
        assert [e.vintage for e in bottle.vintage_stocks] == [2018, 2015]

    @pytest.mark.asyncio
    async def test_same_year_in_one_create_is_merged(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(
            red_wine(
                vintage_stocks=[
                    {"vintage": 2020, "stock": 3},
                    {"vintage": 2020, "stock": 2},
                ]
            ),
            owner.id,
        )

        assert bottle.vintage_stocks == [VintageStock(vintage=2020, stock=5)]
        assert bottle.stock_level == 5

    @pytest.mark.asyncio
    async def test_tracked_bottle_with_only_a_count_gets_current_vintage(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(
            red_wine(vintage_stocks=[], stock_level=4), owner.id
        )

        assert bottle.vintage_stocks == [VintageStock(vintage=2024, stock=4)]
        assert bottle.stock_level == 4

    @pytest.mark.asyncio
    async def test_untracked_category_keeps_scalar_stock(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(
            {"name": "Westmalle Tripel", "category": "Beer", "stock_level": 12}, owner.id
        )

        assert bottle.stock_level == 12
        assert bottle.vintage_stocks == []

    @pytest.mark.asyncio
    async def test_invalid_category_rejected(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        with pytest.raises(BottleValidationError) as exc_info:
            await inventory_store.create(red_wine(category="Mead"), owner.id)
        assert exc_info.value.field == "category"
        assert await Bottle.find_all().count() == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("rating", [0, 6, "5", 4.5])
    async def test_invalid_rating_rejected(
        self, inventory_store: InventoryStore, owner: User, rating
    ) -> None:
        with pytest.raises(BottleValidationError):
            await inventory_store.create(red_wine(rating=rating), owner.id)
        assert await Bottle.find_all().count() == 0

    @pytest.mark.asyncio
    async def test_future_vintage_rejected(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        with pytest.raises(BottleValidationError):
            await inventory_store.create(
                red_wine(vintage_stocks=[{"vintage": 2030, "stock": 1}]), owner.id
            )
        assert await Bottle.find_all().count() == 0

    @pytest.mark.asyncio
    async def test_missing_name_rejected(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        with pytest.raises(BottleValidationError) as exc_info:
            await inventory_store.create(red_wine(name="  "), owner.id)
        assert exc_info.value.field == "name"

    @pytest.mark.asyncio
    async def test_read_only_fields_rejected(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        with pytest.raises(BottleValidationError):
            await inventory_store.create(red_wine(id=7), owner.id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "vintage_stocks",
        [
            5,
            "2015",
            [{"vintage": 2015.9, "stock": 2}],
            [{"vintage": 2015, "stock": 2.7}],
            [{"vintage": True, "stock": 1}],
        ],
    )
    async def test_malformed_vintage_stocks_rejected(
        self, inventory_store: InventoryStore, owner: User, vintage_stocks
    ) -> None:
        with pytest.raises(BottleValidationError) as exc_info:
            await inventory_store.create(red_wine(vintage_stocks=vintage_stocks), owner.id)
        assert exc_info.value.field == "vintage_stocks"
        assert await Bottle.find_all().count() == 0


class TestQueries:
    """Tests for listing and lookups."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, inventory_store: InventoryStore, owner: User) -> None:
        assert await inventory_store.get(999) is None

    @pytest.mark.asyncio
    async def test_list_scoped_by_owner(self, inventory_store: InventoryStore, owner: User) -> None:
        other = User(email="other@example.com", hashed_password="x")
        await other.insert()

        await inventory_store.create(red_wine(), owner.id)
        await inventory_store.create(red_wine(name="Other Wine"), other.id)

        mine = await inventory_store.list_bottles(owner.id)
        everything = await inventory_store.list_bottles()

        assert [b.name for b in mine] == ["Chateau Margaux"]
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_get_scoped_by_owner(self, inventory_store: InventoryStore, owner: User) -> None:
        other = User(email="other@example.com", hashed_password="x")
        await other.insert()
        bottle = await inventory_store.create(red_wine(), owner.id)

        assert await inventory_store.get(bottle.id, owner_id=other.id) is None
        assert (await inventory_store.get(bottle.id, owner_id=owner.id)).id == bottle.id

    @pytest.mark.asyncio
    async def test_list_by_category_exact_match(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        await inventory_store.create(red_wine(), owner.id)
        await inventory_store.create({"name": "Cloudy", "category": "Cider", "stock_level": 2}, owner.id)

        reds = await inventory_store.list_by_category("Red", owner.id)
        assert [b.name for b in reds] == ["Chateau Margaux"]
        assert await inventory_store.list_by_category("red", owner.id) == []

    @pytest.mark.asyncio
    async def test_category_totals(self, inventory_store: InventoryStore, owner: User) -> None:
        await inventory_store.create({"name": "Ale", "category": "Beer", "stock_level": 6}, owner.id)
        await inventory_store.create(red_wine(), owner.id)
        await inventory_store.create({"name": "Stout", "category": "Beer", "stock_level": 4}, owner.id)

        totals = await inventory_store.category_totals(owner.id)
        assert totals == {"Red": 5, "Beer": 10}
        assert list(totals) == ["Red", "Beer"]


class TestUpdate:
    """Tests for partial updates."""

    @pytest.mark.asyncio
    async def test_update_missing_returns_none(self, inventory_store: InventoryStore, owner: User) -> None:
        assert await inventory_store.update(12345, {"notes": "gone"}) is None

    @pytest.mark.asyncio
    async def test_partial_update_leaves_other_fields(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(notes="Cellar B"), owner.id)

        updated = await inventory_store.update(bottle.id, {"rating": 4})

        assert updated.rating == 4
        assert updated.notes == "Cellar B"
        assert updated.region == "Bordeaux"
        assert updated.stock_level == 5
        assert updated.created_at.replace(tzinfo=None) == bottle.created_at.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_empty_patch_changes_nothing(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        updated = await inventory_store.update(bottle.id, {})
        stored = await inventory_store.get(bottle.id)

        assert updated.vintage_stocks == bottle.vintage_stocks
        assert stored.vintage_stocks == bottle.vintage_stocks
        assert stored.stock_level == 5
        assert stored.updated_at.replace(tzinfo=None) == bottle.updated_at.replace(tzinfo=None)

    @pytest.mark.asyncio
    async def test_vintage_patch_recomputes_total(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        updated = await inventory_store.update(
            bottle.id,
            {"vintage_stocks": [{"vintage": 2019, "stock": 6}, {"vintage": 2016, "stock": 1}]},
        )

        assert updated.stock_level == 7
        stored = await inventory_store.get(bottle.id)
        assert stored.stock_level == 7

    @pytest.mark.asyncio
    async def test_stock_level_patch_ignored_for_tracked_bottle(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        updated = await inventory_store.update(bottle.id, {"stock_level": 99})

        assert updated.stock_level == 5

    @pytest.mark.asyncio
    async def test_untracked_stock_level_set_directly(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        # Moving to an untracked category leaves the old vintages stale
        updated = await inventory_store.update(bottle.id, {"category": "Fortified"})
        assert updated.stock_level == 5

        updated = await inventory_store.update(bottle.id, {"stock_level": 11})
        assert updated.stock_level == 11
        assert len(updated.vintage_stocks) == 2

    @pytest.mark.asyncio
    async def test_category_change_to_tracked_reconciles(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(
            {
                "name": "Port",
                "category": "Fortified",
                "stock_level": 9,
                "vintage_stocks": [{"vintage": 2000, "stock": 2}],
            },
            owner.id,
        )
        assert bottle.stock_level == 9

        updated = await inventory_store.update(bottle.id, {"category": "Red"})
        assert updated.stock_level == 2

    @pytest.mark.asyncio
    async def test_invalid_patch_writes_nothing(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        with pytest.raises(BottleValidationError):
            await inventory_store.update(bottle.id, {"notes": "changed", "rating": 9})

        stored = await inventory_store.get(bottle.id)
        assert stored.notes is None
        assert stored.rating is None

    @pytest.mark.asyncio
    async def test_negative_stock_level_rejected(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create({"name": "Ale", "category": "Beer"}, owner.id)
        with pytest.raises(BottleValidationError):
            await inventory_store.update(bottle.id, {"stock_level": -1})

    @pytest.mark.asyncio
    async def test_null_vintage_stocks_rejected(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        with pytest.raises(BottleValidationError) as exc_info:
            await inventory_store.update(bottle.id, {"vintage_stocks": None})
        assert exc_info.value.field == "vintage_stocks"

        stored = await inventory_store.get(bottle.id)
        assert [e.vintage for e in stored.vintage_stocks] == [2018, 2015]
        assert stored.stock_level == 5


class TestDelete:
    """Tests for deleting bottles."""

    @pytest.mark.asyncio
    async def test_delete_then_get(self, inventory_store: InventoryStore, owner: User) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        assert await inventory_store.delete(bottle.id) is True
        assert await inventory_store.get(bottle.id) is None

    @pytest.mark.asyncio
    async def test_delete_absent_returns_false_twice(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        assert await inventory_store.delete(4242) is False
        assert await inventory_store.delete(4242) is False

    @pytest.mark.asyncio
    async def test_delete_scoped_by_owner(self, inventory_store: InventoryStore, owner: User) -> None:
        other = User(email="other@example.com", hashed_password="x")
        await other.insert()
        bottle = await inventory_store.create(red_wine(), owner.id)

        assert await inventory_store.delete(bottle.id, owner_id=other.id) is False
        assert await inventory_store.get(bottle.id) is not None


class TestVintageHelpers:
    """Tests for adding and removing single vintages."""

    @pytest.mark.asyncio
    async def test_same_year_across_calls_is_merged(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(
            red_wine(vintage_stocks=[{"vintage": 2020, "stock": 3}]), owner.id
        )

        updated = await inventory_store.add_vintage_stock(bottle.id, 2020, 2)

        assert updated.vintage_stocks == [VintageStock(vintage=2020, stock=5)]
        assert updated.stock_level == 5

    @pytest.mark.asyncio
    async def test_add_new_year(self, inventory_store: InventoryStore, owner: User) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        updated = await inventory_store.add_vintage_stock(bottle.id, 2021, 1)

        assert [e.vintage for e in updated.vintage_stocks] == [2021, 2018, 2015]
        assert updated.stock_level == 6

    @pytest.mark.asyncio
    async def test_add_to_untracked_category_rejected(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create({"name": "Ale", "category": "Beer"}, owner.id)
        with pytest.raises(BottleValidationError):
            await inventory_store.add_vintage_stock(bottle.id, 2020, 1)

    @pytest.mark.asyncio
    async def test_add_to_missing_bottle(self, inventory_store: InventoryStore, owner: User) -> None:
        assert await inventory_store.add_vintage_stock(777, 2020, 1) is None

    @pytest.mark.asyncio
    async def test_remove_vintage(self, inventory_store: InventoryStore, owner: User) -> None:
        bottle = await inventory_store.create(red_wine(), owner.id)

        updated = await inventory_store.remove_vintage(bottle.id, 2015)

        assert [e.vintage for e in updated.vintage_stocks] == [2018]
        assert updated.stock_level == 3

    @pytest.mark.asyncio
    async def test_remove_last_vintage_zeroes_stock(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        bottle = await inventory_store.create(
            red_wine(vintage_stocks=[{"vintage": 2020, "stock": 3}]), owner.id
        )

        updated = await inventory_store.remove_vintage(bottle.id, 2020)

        assert updated.vintage_stocks == []
        assert updated.stock_level == 0


class TestConfiguredPolicy:
    """Tests for a store with a custom vintage-tracked set."""

    @pytest.mark.asyncio
    async def test_custom_vintage_categories(self, owner: User) -> None:
        store = InventoryStore(vintage_categories={BeverageCategory.FORTIFIED})

        port = await store.create(
            {
                "name": "Vintage Port",
                "category": "Fortified",
                "vintage_stocks": [{"vintage": 2011, "stock": 2}],
            },
            owner.id,
        )
        red = await store.create(
            red_wine(stock_level=1, vintage_stocks=[{"vintage": 2019, "stock": 8}]), owner.id
        )

        assert port.stock_level == 2
        assert red.stock_level == 1


class TestErrors:
    """Tests for error translation."""

    def test_parse_bottle_id(self) -> None:
        assert parse_bottle_id("17") == 17
        with pytest.raises(BottleValidationError):
            parse_bottle_id("abc")
        with pytest.raises(BottleValidationError):
            parse_bottle_id(None)

    @pytest.mark.asyncio
    async def test_driver_errors_become_persistence_errors(
        self, inventory_store: InventoryStore, owner: User
    ) -> None:
        with patch.object(Bottle, "find_one", side_effect=ServerSelectionTimeoutError("down")):
            with pytest.raises(PersistenceError):
                await inventory_store.get(1)
