"""Application use cases."""

from bakery_stock.application.use_cases.bulk_import_stock_items import (
    BulkImportResult,
    BulkImportStockItemsUseCase,
)
from bakery_stock.application.use_cases.calculate_product_cost import (
    CalculateProductCostUseCase,
)

__all__ = [
    "BulkImportResult",
    "BulkImportStockItemsUseCase",
    "CalculateProductCostUseCase",
]
