"""Integration tests: ledger, registry and costing against a real SQLite database."""

import asyncio
from decimal import Decimal

import pytest

from bakery_stock.application.use_cases import CalculateProductCostUseCase
from bakery_stock.core.entities import MovementType, StockItemStatus, StockMovementFilter
from bakery_stock.core.exceptions import (
    InsufficientStockError,
    StockItemInUseError,
    StockItemNotFoundError,
    ValidationError,
)
from bakery_stock.core.services import (
    BrandCatalog,
    RecipeService,
    StockItemRegistry,
    StockLedger,
)


@pytest.fixture
def registry(db) -> StockItemRegistry:
    return StockItemRegistry()


@pytest.fixture
def ledger(db) -> StockLedger:
    return StockLedger()


@pytest.fixture
def catalog(db) -> BrandCatalog:
    return BrandCatalog()


@pytest.fixture
def recipes(db) -> RecipeService:
    return RecipeService()


class TestFlourDay:
    """Flour through a day: delivery, production, recount and spoilage."""

    async def test_full_day(self, registry, ledger):
        flour = await registry.create(
            "Flour", "kg", initial_quantity="100", reorder_threshold="20", user_id="manager"
        )
        assert flour.status == StockItemStatus.AVAILABLE

        result = await ledger.consume(
            flour.id, "20", reference_type="order", reference_id="o-1", user_id="baker"
        )
        assert result.stock_item.current_quantity == Decimal("80.000")

        result = await ledger.adjust(flour.id, "-5", reason="Recount", user_id="manager")
        assert result.stock_item.current_quantity == Decimal("75.000")

        result = await ledger.record_loss(flour.id, MovementType.DAMAGED, "60", reason="Water leak")
        assert result.stock_item.current_quantity == Decimal("15.000")
        assert result.stock_item.status == StockItemStatus.LOW_STOCK

        stored = await registry.get(flour.id)
        assert stored.current_quantity == Decimal("15.000")
        assert stored.status == StockItemStatus.LOW_STOCK

        history = await ledger.get_movements(StockMovementFilter(stock_item_id=flour.id))
        assert [m.type for m in history.items] == [
            MovementType.DAMAGED,
            MovementType.ADJUSTED,
            MovementType.USED,
            MovementType.RECEIVED,
        ]
        assert history.items[-1].reason == "Initial stock"
        assert history.items[-1].user_id == "manager"

    async def test_overdraw_leaves_no_trace(self, registry, ledger):
        sugar = await registry.create("Sugar", "kg", initial_quantity="3")

        with pytest.raises(InsufficientStockError):
            await ledger.consume(sugar.id, "3.001")
        with pytest.raises(ValidationError):
            await ledger.adjust(sugar.id, "-4", reason="Recount")

        page = await ledger.get_movements(StockMovementFilter(stock_item_id=sugar.id))
        assert page.total == 1
        assert (await registry.get(sugar.id)).current_quantity == Decimal("3.000")

    async def test_consume_to_zero(self, registry, ledger):
        eggs = await registry.create("Eggs", "pcs", initial_quantity="12")

        result = await ledger.consume(eggs.id, "12")

        assert result.stock_item.status == StockItemStatus.OUT_OF_STOCK


class TestQuantityConservation:
    async def test_delivery_order_refusal_and_spoilage(self, registry, ledger):
        flour = await registry.create("Flour", "kg", reorder_threshold="10")
        assert flour.current_quantity == Decimal("0.000")
        assert flour.status == StockItemStatus.OUT_OF_STOCK

        result = await ledger.receive(flour.id, "50", reason="initial stock")
        assert result.stock_item.current_quantity == Decimal("50.000")
        assert result.stock_item.status == StockItemStatus.AVAILABLE

        result = await ledger.consume(flour.id, "45", reference_type="order", reference_id="ORD-1")
        assert result.stock_item.current_quantity == Decimal("5.000")
        assert result.stock_item.status == StockItemStatus.LOW_STOCK

        with pytest.raises(InsufficientStockError):
            await ledger.consume(flour.id, "10")
        assert (await registry.get(flour.id)).current_quantity == Decimal("5.000")

        result = await ledger.adjust(flour.id, "-5", reason="spoilage")
        assert result.stock_item.current_quantity == Decimal("0.000")
        assert result.stock_item.status == StockItemStatus.OUT_OF_STOCK

        page = await ledger.get_movements(StockMovementFilter(stock_item_id=flour.id))
        movements = list(reversed(page.items))
        assert page.total == 3
        assert [(m.type, m.quantity) for m in movements] == [
            (MovementType.RECEIVED, Decimal("50.000")),
            (MovementType.USED, Decimal("-45.000")),
            (MovementType.ADJUSTED, Decimal("-5.000")),
        ]
        assert movements[1].reference_id == "ORD-1"
        assert movements[2].reason == "spoilage"
        assert sum(m.quantity for m in movements) == Decimal("0")

    async def test_concurrent_movements_reconcile(self, registry, ledger):
        butter = await registry.create("Butter", "kg", initial_quantity="50")

        await asyncio.gather(
            *(ledger.receive(butter.id, "2") for _ in range(5)),
            *(ledger.consume(butter.id, "3") for _ in range(5)),
        )

        check = await ledger.reconcile(butter.id)
        assert check.consistent is True
        assert check.current_quantity == Decimal("45.000")
        assert check.ledger_quantity == Decimal("45.000")

    async def test_each_movement_chains_from_the_previous(self, registry, ledger):
        milk = await registry.create("Milk", "l", initial_quantity="10")
        await ledger.receive(milk.id, "5")
        await ledger.consume(milk.id, "7.5")

        page = await ledger.get_movements(StockMovementFilter(stock_item_id=milk.id))
        movements = list(reversed(page.items))

        for previous, current in zip(movements, movements[1:]):
            assert current.previous_quantity == previous.new_quantity
        for m in movements:
            assert m.new_quantity == m.previous_quantity + m.quantity


class TestDeletionProtection:
    async def test_round_trip(self, registry, recipes):
        flour = await registry.create("Flour", "kg", initial_quantity="10")
        loaf = await recipes.create_product("Sourdough loaf", price="6.50")
        await recipes.add_ingredient(loaf.id, flour.id, "0.5")

        check = await registry.check_can_delete(flour.id)
        assert check.can_delete is False
        assert check.product_count == 1
        with pytest.raises(StockItemInUseError):
            await registry.soft_delete(flour.id)

        await recipes.remove_ingredient(loaf.id, flour.id)
        await registry.soft_delete(flour.id)
        with pytest.raises(StockItemNotFoundError):
            await registry.get(flour.id)

        restored = await registry.restore(flour.id)
        assert restored.current_quantity == Decimal("10.000")

    async def test_concurrent_delete_and_add_ingredient(self, registry, recipes):
        for attempt in range(10):
            item = await registry.create(f"Rye {attempt}", "kg")
            loaf = await recipes.create_product(f"Rye loaf {attempt}")

            deleted, added = await asyncio.gather(
                registry.soft_delete(item.id),
                recipes.add_ingredient(loaf.id, item.id, "1"),
                return_exceptions=True,
            )

            recipe = await recipes.get_recipe(loaf.id)
            stored = await registry.get(item.id, active_only=False)
            if stored.is_deleted:
                assert deleted is None
                assert isinstance(added, StockItemNotFoundError)
                assert recipe.ingredients == []
            else:
                assert isinstance(deleted, StockItemInUseError)
                assert [line.stock_item_id for line in recipe.ingredients] == [item.id]

    async def test_ingredient_for_deleted_item_refused(self, registry, recipes):
        item = await registry.create("Spelt", "kg")
        loaf = await recipes.create_product("Spelt loaf")
        await registry.soft_delete(item.id)

        with pytest.raises(StockItemNotFoundError):
            await recipes.add_ingredient(loaf.id, item.id, "1")


class TestProductCost:
    async def test_cost_from_preferred_and_override(self, registry, catalog, recipes):
        flour = await registry.create("Flour", "kg")
        sugar = await registry.create("Sugar", "kg")
        mill = await catalog.create_brand("Mill Co")
        cane = await catalog.create_brand("Cane Co")
        beet = await catalog.create_brand("Beet Co")

        await catalog.add_brand_to_stock_item(flour.id, mill.id, "90", "100", is_preferred=True)
        await catalog.add_brand_to_stock_item(sugar.id, cane.id, "36", "40", is_preferred=True)
        await catalog.add_brand_to_stock_item(sugar.id, beet.id, "45", "50")

        cake = await recipes.create_product("Cake")
        await recipes.add_ingredient(cake.id, flour.id, "2")
        await recipes.add_ingredient(cake.id, sugar.id, "3", preferred_brand_id=beet.id)

        use_case = CalculateProductCostUseCase()
        cost = await use_case.execute(cake.id)
        assert cost.total_cost == Decimal("350.00")

        # Removing the override's brand link falls back to the preferred brand
        await catalog.remove_brand_from_stock_item(sugar.id, beet.id)
        cost = await use_case.execute(cake.id)
        assert cost.total_cost == Decimal("320.00")
        assert cost.breakdown[1].brand_name == "Cane Co"
