"""SQLite storage implementations."""

from bakery_stock.infrastructure.storage.sqlite.brand_store import SQLiteBrandStore
from bakery_stock.infrastructure.storage.sqlite.connection import (
    StockDatabase,
    close_database,
    get_connection,
    get_database,
    get_transaction,
)
from bakery_stock.infrastructure.storage.sqlite.product_store import (
    SQLiteProductStore,
    SQLiteRecipeStore,
)
from bakery_stock.infrastructure.storage.sqlite.stock_item_store import SQLiteStockItemStore
from bakery_stock.infrastructure.storage.sqlite.stock_movement_store import (
    SQLiteStockMovementStore,
)

# Singleton instances
_stock_item_store: SQLiteStockItemStore | None = None
_stock_movement_store: SQLiteStockMovementStore | None = None
_brand_store: SQLiteBrandStore | None = None
_product_store: SQLiteProductStore | None = None
_recipe_store: SQLiteRecipeStore | None = None


async def get_stock_item_store() -> SQLiteStockItemStore:
    """Get singleton stock item store instance."""
    global _stock_item_store
    if _stock_item_store is None:
        _stock_item_store = SQLiteStockItemStore()
    return _stock_item_store


async def get_stock_movement_store() -> SQLiteStockMovementStore:
    """Get singleton stock movement store instance."""
    global _stock_movement_store
    if _stock_movement_store is None:
        _stock_movement_store = SQLiteStockMovementStore()
    return _stock_movement_store


async def get_brand_store() -> SQLiteBrandStore:
    """Get singleton brand store instance."""
    global _brand_store
    if _brand_store is None:
        _brand_store = SQLiteBrandStore()
    return _brand_store


async def get_product_store() -> SQLiteProductStore:
    """Get singleton product store instance."""
    global _product_store
    if _product_store is None:
        _product_store = SQLiteProductStore()
    return _product_store


async def get_recipe_store() -> SQLiteRecipeStore:
    """Get singleton recipe store instance."""
    global _recipe_store
    if _recipe_store is None:
        _recipe_store = SQLiteRecipeStore()
    return _recipe_store


__all__ = [
    # Connection
    "StockDatabase",
    "get_database",
    "close_database",
    "get_connection",
    "get_transaction",
    # Store classes
    "SQLiteStockItemStore",
    "SQLiteStockMovementStore",
    "SQLiteBrandStore",
    "SQLiteProductStore",
    "SQLiteRecipeStore",
    # Factory functions
    "get_stock_item_store",
    "get_stock_movement_store",
    "get_brand_store",
    "get_product_store",
    "get_recipe_store",
]
