"""Tests for SQLite stock item store."""

from decimal import Decimal

import pytest

from bakery_stock.core.entities import (
    ProductStockItem,
    StockItem,
    StockItemFilter,
    StockItemStatus,
)
from bakery_stock.core.exceptions import (
    DuplicateStockItemError,
    StaleStockItemError,
    StockItemInUseError,
)


class TestCreateAndGet:
    async def test_create_persists_decimals(self, item_store, stored_flour):
        fetched = await item_store.get(stored_flour.id)

        assert fetched.name == "Flour"
        assert fetched.current_quantity == Decimal("100.000")
        assert fetched.reorder_threshold == Decimal("20.000")
        assert fetched.status == StockItemStatus.AVAILABLE
        assert fetched.version == 0
        assert fetched.created_at.tzinfo is not None

    async def test_opening_movement_written_with_item(self, movement_store, stored_flour):
        assert await movement_store.sum_quantity(stored_flour.id) == Decimal("100.000")

    async def test_duplicate_name(self, item_store, stored_flour):
        with pytest.raises(DuplicateStockItemError):
            await item_store.create(StockItem(name="Flour", unit_of_measure="g"))

    async def test_get_by_name(self, item_store, stored_flour):
        assert (await item_store.get_by_name("Flour")).id == stored_flour.id
        assert await item_store.get_by_name("flour") is None

    async def test_get_missing(self, item_store):
        assert await item_store.get("missing") is None


class TestUpdate:
    async def test_update_bumps_version(self, item_store, stored_flour):
        stored_flour.description = "Type 550"

        updated = await item_store.update(stored_flour)

        assert updated.version == 1
        fetched = await item_store.get(stored_flour.id)
        assert fetched.description == "Type 550"
        assert fetched.version == 1

    async def test_stale_version_rejected(self, item_store, stored_flour):
        await item_store.update(stored_flour)

        with pytest.raises(StaleStockItemError):
            await item_store.update(stored_flour)

    async def test_rename_to_taken_name(self, item_store, stored_flour):
        sugar = await item_store.create(StockItem(name="Sugar", unit_of_measure="kg"))
        sugar.name = "Flour"

        with pytest.raises(DuplicateStockItemError):
            await item_store.update(sugar)


class TestSoftDelete:
    async def test_deleted_item_is_hidden(self, item_store, stored_flour):
        assert await item_store.soft_delete(stored_flour.id) is True

        assert await item_store.get(stored_flour.id) is None
        deleted = await item_store.get(stored_flour.id, active_only=False)
        assert deleted.is_deleted

    async def test_delete_twice(self, item_store, stored_flour):
        await item_store.soft_delete(stored_flour.id)
        assert await item_store.soft_delete(stored_flour.id) is False

    async def test_name_stays_reserved_after_delete(self, item_store, stored_flour):
        await item_store.soft_delete(stored_flour.id)

        with pytest.raises(DuplicateStockItemError):
            await item_store.create(StockItem(name="Flour", unit_of_measure="kg"))

    async def test_restore(self, item_store, stored_flour):
        await item_store.soft_delete(stored_flour.id)

        restored = await item_store.restore(stored_flour.id)

        assert restored.deleted_at is None
        assert restored.current_quantity == Decimal("100.000")

    async def test_restore_active_item(self, item_store, stored_flour):
        assert await item_store.restore(stored_flour.id) is None

    async def test_refused_while_recipe_uses_item(
        self, item_store, recipe_store, stored_flour, stored_product
    ):
        await recipe_store.add(
            ProductStockItem(
                product_id=stored_product.id,
                stock_item_id=stored_flour.id,
                quantity=Decimal("0.5"),
            )
        )

        with pytest.raises(StockItemInUseError) as exc_info:
            await item_store.soft_delete(stored_flour.id)

        assert exc_info.value.details["product_count"] == 1
        assert (await item_store.get(stored_flour.id)).deleted_at is None

        await recipe_store.remove(stored_product.id, stored_flour.id)
        assert await item_store.soft_delete(stored_flour.id) is True


class TestList:
    @pytest.fixture
    async def pantry(self, item_store, stored_flour):
        await item_store.create(
            StockItem(
                name="Sugar",
                description="Caster",
                unit_of_measure="kg",
                current_quantity=Decimal("3"),
                reorder_threshold=Decimal("5"),
                status=StockItemStatus.LOW_STOCK,
            )
        )
        yeast = await item_store.create(StockItem(name="Yeast", unit_of_measure="g"))
        await item_store.soft_delete(yeast.id)

    async def test_excludes_deleted(self, item_store, pantry):
        page = await item_store.list(StockItemFilter(sort_by="name", sort_order="asc"))

        assert page.total == 2
        assert [i.name for i in page.items] == ["Flour", "Sugar"]

    async def test_include_deleted(self, item_store, pantry):
        page = await item_store.list(StockItemFilter(active_only=False))
        assert page.total == 3

    async def test_low_stock_only(self, item_store, pantry):
        page = await item_store.list(StockItemFilter(low_stock_only=True))
        assert [i.name for i in page.items] == ["Sugar"]

    async def test_status_filter(self, item_store, pantry):
        page = await item_store.list(StockItemFilter(status=StockItemStatus.AVAILABLE))
        assert [i.name for i in page.items] == ["Flour"]

    async def test_search_matches_description(self, item_store, pantry):
        page = await item_store.list(StockItemFilter(search="cast"))
        assert [i.name for i in page.items] == ["Sugar"]

    async def test_sort_by_quantity(self, item_store, pantry):
        page = await item_store.list(
            StockItemFilter(sort_by="current_quantity", sort_order="desc")
        )
        assert [i.name for i in page.items] == ["Flour", "Sugar"]

    async def test_pagination(self, item_store, pantry):
        page = await item_store.list(
            StockItemFilter(sort_by="name", sort_order="asc", page=2, limit=1)
        )

        assert page.total == 2
        assert page.total_pages == 2
        assert [i.name for i in page.items] == ["Sugar"]
