"""Product, recipe (bill of materials) and cost entities."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from bakery_stock.core.entities.common import Price, Quantity, utc_now


class Product(BaseModel):
    """A sellable bakery product."""

    id: str | None = None
    name: str
    description: str | None = None
    price: Price = Decimal("0.00")
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ProductStockItem(BaseModel):
    """Amount of a stock item needed to make one unit of a product."""

    id: str | None = None
    product_id: str
    stock_item_id: str
    quantity: Quantity
    preferred_brand_id: str | None = None
    notes: str | None = None
    # Joined for display
    stock_item_name: str | None = None
    unit_of_measure: str | None = None
    preferred_brand_name: str | None = None
    deleted_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Recipe(BaseModel):
    """A product with its full ingredient list."""

    product: Product
    ingredients: list[ProductStockItem] = Field(default_factory=list)


class CostBreakdownItem(BaseModel):
    """Contribution of one ingredient to the product cost."""

    stock_item_id: str
    stock_item_name: str | None = None
    unit_of_measure: str | None = None
    quantity: Quantity
    brand_id: str | None = None
    brand_name: str | None = None
    unit_price: Decimal
    total_cost: Decimal


class ProductCost(BaseModel):
    """Material cost of one unit of a product."""

    product_id: str
    product_name: str
    total_cost: Decimal
    breakdown: list[CostBreakdownItem] = Field(default_factory=list)
