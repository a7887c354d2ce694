"""Typed query filters, one per listable entity."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, field_validator

from bakery_stock.core.entities.stock_item import StockItemStatus
from bakery_stock.core.entities.stock_movement import MovementType

StockItemSortField = Literal["name", "current_quantity", "status", "created_at", "updated_at"]
SortOrder = Literal["asc", "desc"]


class StockItemFilter(BaseModel):
    """Filters for listing stock items."""

    status: StockItemStatus | None = None
    search: str | None = None  # matches name or description
    low_stock_only: bool = False  # LOW_STOCK or OUT_OF_STOCK
    sort_by: StockItemSortField = "created_at"
    sort_order: SortOrder = "desc"
    page: int = 1
    limit: int = 10
    active_only: bool = True


class BrandFilter(BaseModel):
    """Filters for listing brands."""

    search: str | None = None
    is_active: bool | None = None
    page: int = 1
    limit: int = 10
    active_only: bool = True


class StockMovementFilter(BaseModel):
    """Filters for listing stock movements (newest first)."""

    stock_item_id: str | None = None
    type: MovementType | None = None
    user_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = 1
    limit: int = 10

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        """Naive bounds are taken as UTC."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class ProductFilter(BaseModel):
    """Filters for listing products."""

    search: str | None = None
    page: int = 1
    limit: int = 10
    active_only: bool = True
