"""Core domain services."""

from bakery_stock.core.services.brand_catalog import BrandCatalog
from bakery_stock.core.services.costing import compute_product_cost, resolve_price
from bakery_stock.core.services.recipe_service import RecipeService
from bakery_stock.core.services.stock_item_registry import StockItemRegistry
from bakery_stock.core.services.stock_ledger import (
    LedgerReconciliation,
    StockLedger,
    StockMovementResult,
)
from bakery_stock.core.services.stock_rules import compute_status

__all__ = [
    "BrandCatalog",
    "RecipeService",
    "StockItemRegistry",
    "StockLedger",
    "StockMovementResult",
    "LedgerReconciliation",
    "compute_product_cost",
    "resolve_price",
    "compute_status",
]
