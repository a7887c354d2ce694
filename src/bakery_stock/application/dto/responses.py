"""Response DTOs for API endpoints.

Pydantic v2 models that serialize domain entities for the HTTP layer.
Quantities and prices are Decimals and serialize as strings.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from bakery_stock.core.entities import MovementType, Page, StockItemStatus

T = TypeVar("T")


class EntityResponse(BaseModel):
    """Base for responses built from domain entities."""

    model_config = ConfigDict(from_attributes=True)


class PageResponse(BaseModel, Generic[T]):
    """One page of a listing."""

    items: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


def page_response(page: Page, item_model: type[EntityResponse]) -> PageResponse:
    """Convert a domain page into a PageResponse of `item_model`."""
    return PageResponse[item_model](  # type: ignore[valid-type]
        items=[item_model.model_validate(item) for item in page.items],
        total=page.total,
        page=page.page,
        limit=page.limit,
        total_pages=page.total_pages,
    )


# --- Stock items ---


class StockItemResponse(EntityResponse):
    id: str
    name: str
    description: str | None = None
    unit_of_measure: str
    current_quantity: Decimal
    reorder_threshold: Decimal | None = None
    status: StockItemStatus
    version: int
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class DeletionCheckResponse(EntityResponse):
    can_delete: bool = Field(..., description="False while active recipes use the item")
    product_count: int = Field(..., description="Distinct products using the item")


class ReconciliationResponse(EntityResponse):
    stock_item_id: str
    current_quantity: Decimal
    ledger_quantity: Decimal
    consistent: bool


class BulkImportRowResult(BaseModel):
    """Outcome of importing one row."""

    row: int = Field(..., description="1-based row number")
    name: str | None = None
    success: bool
    id: str | None = None
    error: str | None = None


class BulkImportStockItemsResponse(BaseModel):
    total: int
    succeeded: int
    failed: int
    results: list[BulkImportRowResult]


# --- Ledger ---


class StockMovementResponse(EntityResponse):
    id: str
    stock_item_id: str
    stock_item_name: str | None = None
    type: MovementType
    quantity: Decimal
    previous_quantity: Decimal
    new_quantity: Decimal
    reason: str | None = None
    reference_type: str | None = None
    reference_id: str | None = None
    user_id: str
    created_at: datetime


class StockMovementResultResponse(EntityResponse):
    """A recorded movement with the stock item state after it."""

    movement: StockMovementResponse
    stock_item: StockItemResponse


# --- Brands ---


class BrandResponse(EntityResponse):
    id: str
    name: str
    description: str | None = None
    is_active: bool
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class StockItemBrandResponse(EntityResponse):
    id: str
    stock_item_id: str
    brand_id: str
    brand_name: str | None = None
    price_before_tax: Decimal
    price_after_tax: Decimal
    tax_amount: Decimal
    is_preferred: bool
    created_at: datetime
    updated_at: datetime


# --- Products and recipes ---


class ProductResponse(EntityResponse):
    id: str
    name: str
    description: str | None = None
    price: Decimal
    created_at: datetime
    updated_at: datetime


class ProductStockItemResponse(EntityResponse):
    id: str
    product_id: str
    stock_item_id: str
    stock_item_name: str | None = None
    unit_of_measure: str | None = None
    quantity: Decimal
    preferred_brand_id: str | None = None
    preferred_brand_name: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class RecipeResponse(EntityResponse):
    product: ProductResponse
    ingredients: list[ProductStockItemResponse]


class CostBreakdownItemResponse(EntityResponse):
    stock_item_id: str
    stock_item_name: str | None = None
    unit_of_measure: str | None = None
    quantity: Decimal
    brand_id: str | None = None
    brand_name: str | None = None
    unit_price: Decimal
    total_cost: Decimal


class ProductCostResponse(EntityResponse):
    product_id: str
    product_name: str
    total_cost: Decimal
    breakdown: list[CostBreakdownItemResponse]


# --- Health and errors ---


class DatabaseHealthResponse(BaseModel):
    reachable: bool
    schema_version: str | None = None
    latency_ms: float | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    uptime_seconds: float
    database: DatabaseHealthResponse


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. STOCK_ITEM_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - details: structured context from the domain error
    - path: request path that triggered the error
    - request_id: the X-Request-ID the failure was logged under
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    details: dict[str, Any] = Field(default_factory=dict, description="Structured context")
    path: str | None = Field(default=None, description="Request path")
    request_id: str | None = Field(default=None, description="Request correlation ID")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
