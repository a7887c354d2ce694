"""Stock item domain entity."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from bakery_stock.core.entities.common import Quantity, utc_now


class StockItemStatus(str, Enum):
    """Availability derived from quantity and reorder threshold."""

    AVAILABLE = "available"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


class StockItem(BaseModel):
    """
    A raw material or ingredient tracked in inventory.

    `current_quantity` only changes through stock movements and `status`
    is recomputed from it before every write.
    """

    id: str | None = None
    name: str
    description: str | None = None
    unit_of_measure: str
    current_quantity: Quantity = Decimal("0.000")
    reorder_threshold: Quantity | None = None
    status: StockItemStatus = StockItemStatus.OUT_OF_STOCK
    version: int = 0
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class DeletionCheck(BaseModel):
    """Whether a stock item may be soft-deleted."""

    can_delete: bool
    product_count: int
