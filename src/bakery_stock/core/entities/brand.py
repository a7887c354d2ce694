"""Brand and stock item pricing entities."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from bakery_stock.core.entities.common import Price, utc_now


class Brand(BaseModel):
    """A supplier brand."""

    id: str | None = None
    name: str
    description: str | None = None
    is_active: bool = True
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class StockItemBrand(BaseModel):
    """Price of a stock item when bought from a given brand."""

    id: str | None = None
    stock_item_id: str
    brand_id: str
    brand_name: str | None = None  # joined from brands
    price_before_tax: Price = Decimal("0.00")
    price_after_tax: Price = Decimal("0.00")
    is_preferred: bool = False
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def tax_amount(self) -> Decimal:
        return self.price_after_tax - self.price_before_tax
