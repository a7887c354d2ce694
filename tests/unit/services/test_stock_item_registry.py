"""Unit tests for StockItemRegistry with mocked stores."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from bakery_stock.core.entities import MovementType, StockItemStatus
from bakery_stock.core.exceptions import (
    DuplicateStockItemError,
    StaleStockItemError,
    StockItemInUseError,
    StockItemNotFoundError,
    ValidationError,
)
from bakery_stock.core.services.stock_item_registry import StockItemRegistry


@pytest.fixture
def item_store():
    store = AsyncMock()
    store.get_by_name.return_value = None

    async def create(item, opening_movement=None):
        return item

    async def update(item):
        return item.model_copy(update={"version": item.version + 1})

    store.create.side_effect = create
    store.update.side_effect = update
    return store


@pytest.fixture
def recipe_store():
    store = AsyncMock()
    store.count_products_using.return_value = 0
    return store


@pytest.fixture
def registry(item_store, recipe_store) -> StockItemRegistry:
    return StockItemRegistry(stock_item_store=item_store, recipe_store=recipe_store)


class TestCreate:
    async def test_create_empty_item(self, registry, item_store):
        item = await registry.create("  Flour ", "kg")

        assert item.id is not None
        assert item.name == "Flour"
        assert item.status == StockItemStatus.OUT_OF_STOCK
        _, kwargs = item_store.create.call_args
        assert kwargs["opening_movement"] is None

    async def test_initial_quantity_books_opening_movement(self, registry, item_store):
        item = await registry.create(
            "Flour", "kg", initial_quantity="100", reorder_threshold="20", user_id="baker"
        )

        assert item.status == StockItemStatus.AVAILABLE
        opening = item_store.create.call_args.kwargs["opening_movement"]
        assert opening.type == MovementType.RECEIVED
        assert opening.stock_item_id == item.id
        assert opening.previous_quantity == Decimal("0.000")
        assert opening.new_quantity == Decimal("100.000")
        assert opening.user_id == "baker"

    async def test_at_threshold_is_low_stock(self, registry):
        item = await registry.create("Sugar", "kg", initial_quantity=5, reorder_threshold=5)
        assert item.status == StockItemStatus.LOW_STOCK

    async def test_duplicate_name(self, registry, item_store, flour):
        item_store.get_by_name.return_value = flour
        with pytest.raises(DuplicateStockItemError):
            await registry.create("Flour", "kg")
        item_store.create.assert_not_awaited()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"name": "", "unit_of_measure": "kg"},
            {"name": "Flour", "unit_of_measure": ""},
            {"name": "Flour", "unit_of_measure": "kg", "initial_quantity": "-1"},
            {"name": "Flour", "unit_of_measure": "kg", "reorder_threshold": "-1"},
        ],
    )
    async def test_invalid_input(self, registry, kwargs):
        with pytest.raises(ValidationError):
            await registry.create(**kwargs)


class TestUpdate:
    async def test_threshold_change_recomputes_status(self, registry, item_store, flour):
        item_store.get.return_value = flour

        updated = await registry.update("item-flour", {"reorder_threshold": "150"})

        assert updated.status == StockItemStatus.LOW_STOCK
        assert updated.current_quantity == Decimal("100.000")

    async def test_quantity_is_not_updatable(self, registry):
        with pytest.raises(ValidationError):
            await registry.update("item-flour", {"current_quantity": "5"})

    async def test_rename_to_existing_name(self, registry, item_store, flour):
        item_store.get.return_value = flour
        item_store.get_by_name.return_value = flour.model_copy(update={"id": "other"})

        with pytest.raises(DuplicateStockItemError):
            await registry.update("item-flour", {"name": "Sugar"})

    async def test_stale_update_is_retried(self, registry, item_store, flour):
        item_store.get.return_value = flour
        attempts = {"n": 0}

        async def update(item):
            attempts["n"] += 1
            if attempts["n"] == 1:
                raise StaleStockItemError(item.id, item.version)
            return item

        item_store.update.side_effect = update

        await registry.update("item-flour", {"description": "Type 550"})

        assert attempts["n"] == 2


class TestDeletionProtection:
    async def test_can_delete_when_unused(self, registry, item_store, flour):
        item_store.get.return_value = flour
        check = await registry.check_can_delete("item-flour")
        assert check.can_delete is True
        assert check.product_count == 0

    async def test_refused_while_in_use(self, registry, item_store):
        item_store.soft_delete.side_effect = StockItemInUseError("item-flour", 2)

        with pytest.raises(StockItemInUseError) as exc_info:
            await registry.soft_delete("item-flour")

        assert exc_info.value.details["product_count"] == 2

    async def test_delete_unknown_item(self, registry, item_store):
        item_store.soft_delete.return_value = False
        with pytest.raises(StockItemNotFoundError):
            await registry.soft_delete("missing")

    async def test_unknown_item(self, registry, item_store):
        item_store.get.return_value = None
        with pytest.raises(StockItemNotFoundError):
            await registry.check_can_delete("missing")

    async def test_restore_unknown(self, registry, item_store):
        item_store.restore.return_value = None
        with pytest.raises(StockItemNotFoundError):
            await registry.restore("missing")
