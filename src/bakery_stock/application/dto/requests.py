"""Request DTOs for API endpoints.

Pydantic v2 models for API request parsing. They check shapes and types
only; domain rules (positive quantities, reasons, price ordering) are
enforced by the core services so they surface as VALIDATION_ERROR.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from bakery_stock.core.entities import MovementType

# --- Stock items ---


class CreateStockItemRequest(BaseModel):
    """Request to register a stock item."""

    name: str = Field(..., description="Unique stock item name", examples=["Flour"])
    unit_of_measure: str = Field(..., description="Free-form unit", examples=["kg", "l"])
    description: str | None = Field(default=None, description="Optional description")
    initial_quantity: Decimal = Field(
        default=Decimal("0"),
        description="Opening quantity, booked as a RECEIVED movement when positive",
    )
    reorder_threshold: Decimal | None = Field(
        default=None,
        description="Quantity at or below which the item is LOW_STOCK",
    )


class UpdateStockItemRequest(BaseModel):
    """Partial update of a stock item. Only fields sent are changed."""

    name: str | None = None
    description: str | None = None
    unit_of_measure: str | None = None
    reorder_threshold: Decimal | None = None


class StockItemImportRow(BaseModel):
    """One row of a bulk stock item import."""

    name: str | None = None
    unit_of_measure: str | None = None
    description: str | None = None
    initial_quantity: Decimal = Decimal("0")
    reorder_threshold: Decimal | None = None


class BulkImportStockItemsRequest(BaseModel):
    """Bulk import of stock items; bad rows are reported, not fatal."""

    items: list[StockItemImportRow] = Field(..., min_length=1, max_length=1000)


# --- Ledger ---


class ReceiveStockRequest(BaseModel):
    """Book a delivery."""

    quantity: Decimal = Field(..., description="Positive quantity received", examples=["50"])
    reason: str | None = Field(default=None, description="Optional note")
    reference_type: str | None = Field(default=None, examples=["purchase_order"])
    reference_id: str | None = None


class AdjustStockRequest(BaseModel):
    """Book a signed correction."""

    quantity: Decimal = Field(..., description="Signed non-zero delta", examples=["-2.5"])
    reason: str | None = Field(default=None, description="Required explanation")


class ConsumeStockRequest(BaseModel):
    """Book usage in production."""

    quantity: Decimal = Field(..., description="Positive quantity used", examples=["20"])
    reference_type: str | None = Field(default=None, examples=["order"])
    reference_id: str | None = None
    reason: str | None = None


class RecordLossRequest(BaseModel):
    """Book damaged or expired stock."""

    type: MovementType = Field(..., description="damaged or expired")
    quantity: Decimal = Field(..., description="Positive quantity lost")
    reason: str | None = Field(default=None, description="Required explanation")


# --- Brands ---


class CreateBrandRequest(BaseModel):
    name: str = Field(..., examples=["Bob's Mill"])
    description: str | None = None
    is_active: bool = True


class UpdateBrandRequest(BaseModel):
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None


class AddStockItemBrandRequest(BaseModel):
    """Price a stock item for a brand."""

    brand_id: str
    price_before_tax: Decimal = Field(..., examples=["90.00"])
    price_after_tax: Decimal = Field(..., examples=["100.00"])
    is_preferred: bool = False


class UpdateStockItemBrandRequest(BaseModel):
    price_before_tax: Decimal | None = None
    price_after_tax: Decimal | None = None
    is_preferred: bool | None = None


# --- Products and recipes ---


class CreateProductRequest(BaseModel):
    name: str = Field(..., examples=["Sourdough loaf"])
    description: str | None = None
    price: Decimal = Decimal("0")


class AddIngredientRequest(BaseModel):
    """Add a stock item to a product recipe."""

    stock_item_id: str
    quantity: Decimal = Field(..., description="Amount per unit of product", examples=["0.5"])
    preferred_brand_id: str | None = Field(
        default=None, description="Brand to price this ingredient from"
    )
    notes: str | None = None


class UpdateIngredientRequest(BaseModel):
    quantity: Decimal | None = None
    preferred_brand_id: str | None = None
    notes: str | None = None
