"""Core interfaces (ports) for dependency injection."""

from bakery_stock.core.interfaces.brand_store import IBrandStore
from bakery_stock.core.interfaces.product_store import IProductStore, IRecipeStore
from bakery_stock.core.interfaces.stock_item_store import IStockItemStore
from bakery_stock.core.interfaces.stock_movement_store import IStockMovementStore

__all__ = [
    "IStockItemStore",
    "IStockMovementStore",
    "IBrandStore",
    "IProductStore",
    "IRecipeStore",
]
