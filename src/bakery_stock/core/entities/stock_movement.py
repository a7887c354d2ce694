"""Stock movement ledger entity."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from bakery_stock.core.entities.common import Quantity, utc_now


class MovementType(str, Enum):
    """Why a stock quantity changed."""

    RECEIVED = "received"
    USED = "used"
    ADJUSTED = "adjusted"
    DAMAGED = "damaged"
    EXPIRED = "expired"


# Movement types that must carry a reason
REASON_REQUIRED_TYPES = frozenset(
    {MovementType.ADJUSTED, MovementType.DAMAGED, MovementType.EXPIRED}
)

# Movement types recording a loss of stock
LOSS_TYPES = frozenset({MovementType.DAMAGED, MovementType.EXPIRED})

MAX_REASON_LENGTH = 500


class StockMovement(BaseModel):
    """
    Immutable record of a single quantity change.

    `quantity` is the signed delta: new_quantity = previous_quantity + quantity.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    stock_item_id: str
    stock_item_name: str | None = None  # joined from stock_items
    type: MovementType
    quantity: Quantity
    previous_quantity: Quantity
    new_quantity: Quantity
    reason: str | None = None
    reference_type: str | None = None  # e.g. "order"
    reference_id: str | None = None
    user_id: str
    created_at: datetime = Field(default_factory=utc_now)
