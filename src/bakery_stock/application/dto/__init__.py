"""Data Transfer Objects for API layer.

Request DTOs: Parse incoming API requests.
Response DTOs: Structure and serialize API responses.
"""

from bakery_stock.application.dto.requests import (
    AddIngredientRequest,
    AddStockItemBrandRequest,
    AdjustStockRequest,
    BulkImportStockItemsRequest,
    ConsumeStockRequest,
    CreateBrandRequest,
    CreateProductRequest,
    CreateStockItemRequest,
    ReceiveStockRequest,
    RecordLossRequest,
    StockItemImportRow,
    UpdateBrandRequest,
    UpdateIngredientRequest,
    UpdateStockItemBrandRequest,
    UpdateStockItemRequest,
)
from bakery_stock.application.dto.responses import (
    BrandResponse,
    BulkImportRowResult,
    BulkImportStockItemsResponse,
    CostBreakdownItemResponse,
    DatabaseHealthResponse,
    DeletionCheckResponse,
    ErrorResponse,
    HealthResponse,
    PageResponse,
    ProductCostResponse,
    ProductResponse,
    ProductStockItemResponse,
    RecipeResponse,
    ReconciliationResponse,
    StockItemBrandResponse,
    StockItemResponse,
    StockMovementResponse,
    StockMovementResultResponse,
    page_response,
)

__all__ = [
    # Requests
    "AddIngredientRequest",
    "AddStockItemBrandRequest",
    "AdjustStockRequest",
    "BulkImportStockItemsRequest",
    "ConsumeStockRequest",
    "CreateBrandRequest",
    "CreateProductRequest",
    "CreateStockItemRequest",
    "ReceiveStockRequest",
    "RecordLossRequest",
    "StockItemImportRow",
    "UpdateBrandRequest",
    "UpdateIngredientRequest",
    "UpdateStockItemBrandRequest",
    "UpdateStockItemRequest",
    # Responses
    "BrandResponse",
    "BulkImportRowResult",
    "BulkImportStockItemsResponse",
    "CostBreakdownItemResponse",
    "DatabaseHealthResponse",
    "DeletionCheckResponse",
    "ErrorResponse",
    "HealthResponse",
    "PageResponse",
    "page_response",
    "ProductCostResponse",
    "ProductResponse",
    "ProductStockItemResponse",
    "RecipeResponse",
    "ReconciliationResponse",
    "StockItemBrandResponse",
    "StockItemResponse",
    "StockMovementResponse",
    "StockMovementResultResponse",
]
