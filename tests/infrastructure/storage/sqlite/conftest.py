"""Pytest fixtures for SQLite storage tests."""

from decimal import Decimal

import pytest

from bakery_stock.core.entities import (
    Brand,
    MovementType,
    Product,
    StockItem,
    StockItemStatus,
    StockMovement,
)
from bakery_stock.infrastructure.storage.sqlite import (
    SQLiteBrandStore,
    SQLiteProductStore,
    SQLiteRecipeStore,
    SQLiteStockItemStore,
    SQLiteStockMovementStore,
)


@pytest.fixture
def item_store(db) -> SQLiteStockItemStore:
    return SQLiteStockItemStore()


@pytest.fixture
def movement_store(db) -> SQLiteStockMovementStore:
    return SQLiteStockMovementStore()


@pytest.fixture
def brand_store(db) -> SQLiteBrandStore:
    return SQLiteBrandStore()


@pytest.fixture
def product_store(db) -> SQLiteProductStore:
    return SQLiteProductStore()


@pytest.fixture
def recipe_store(db) -> SQLiteRecipeStore:
    return SQLiteRecipeStore()


@pytest.fixture
async def stored_flour(item_store: SQLiteStockItemStore) -> StockItem:
    """Flour persisted with 100 kg on hand and its opening movement."""
    item = StockItem(
        name="Flour",
        unit_of_measure="kg",
        current_quantity=Decimal("100"),
        reorder_threshold=Decimal("20"),
        status=StockItemStatus.AVAILABLE,
    )
    opening = StockMovement(
        stock_item_id="pending",
        type=MovementType.RECEIVED,
        quantity=Decimal("100"),
        previous_quantity=Decimal("0"),
        new_quantity=Decimal("100"),
        reason="Initial stock",
        user_id="system",
    )
    return await item_store.create(item, opening_movement=opening)


@pytest.fixture
async def stored_brand(brand_store: SQLiteBrandStore) -> Brand:
    return await brand_store.create_brand(Brand(name="Mill Co"))


@pytest.fixture
async def stored_product(product_store: SQLiteProductStore) -> Product:
    return await product_store.create(Product(name="Sourdough loaf", price=Decimal("6.50")))


def movement_for(item: StockItem, delta: str, type: MovementType = MovementType.USED, **kwargs):
    """Build the movement and post-movement item for a signed delta."""
    delta_qty = Decimal(delta)
    new_quantity = item.current_quantity + delta_qty
    movement = StockMovement(
        stock_item_id=item.id,
        type=type,
        quantity=delta_qty,
        previous_quantity=item.current_quantity,
        new_quantity=new_quantity,
        user_id=kwargs.pop("user_id", "baker"),
        **kwargs,
    )
    return movement, item.model_copy(update={"current_quantity": new_quantity})


@pytest.fixture
def make_movement():
    return movement_for
