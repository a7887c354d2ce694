"""Domain entities for the stock ledger."""

from bakery_stock.core.entities.brand import Brand, StockItemBrand
from bakery_stock.core.entities.common import (
    PRICE_EXP,
    QUANTITY_EXP,
    QUANTITY_TOLERANCE,
    Page,
    Price,
    Quantity,
    new_id,
    to_price,
    to_quantity,
    utc_now,
)
from bakery_stock.core.entities.filters import (
    BrandFilter,
    ProductFilter,
    StockItemFilter,
    StockMovementFilter,
)
from bakery_stock.core.entities.product import (
    CostBreakdownItem,
    Product,
    ProductCost,
    ProductStockItem,
    Recipe,
)
from bakery_stock.core.entities.stock_item import DeletionCheck, StockItem, StockItemStatus
from bakery_stock.core.entities.stock_movement import (
    LOSS_TYPES,
    MAX_REASON_LENGTH,
    REASON_REQUIRED_TYPES,
    MovementType,
    StockMovement,
)

__all__ = [
    # Stock items
    "StockItem",
    "StockItemStatus",
    "DeletionCheck",
    # Brands
    "Brand",
    "StockItemBrand",
    # Movements
    "StockMovement",
    "MovementType",
    "REASON_REQUIRED_TYPES",
    "LOSS_TYPES",
    "MAX_REASON_LENGTH",
    # Products and recipes
    "Product",
    "ProductStockItem",
    "Recipe",
    "ProductCost",
    "CostBreakdownItem",
    # Filters
    "StockItemFilter",
    "BrandFilter",
    "StockMovementFilter",
    "ProductFilter",
    # Values
    "Page",
    "Quantity",
    "Price",
    "QUANTITY_EXP",
    "PRICE_EXP",
    "QUANTITY_TOLERANCE",
    "to_quantity",
    "to_price",
    "utc_now",
    "new_id",
]
