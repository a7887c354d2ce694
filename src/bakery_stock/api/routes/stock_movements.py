"""Stock movement (ledger history) endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends

from bakery_stock.api.dependencies import get_app_settings, get_stock_ledger
from bakery_stock.application.dto.responses import (
    ErrorResponse,
    PageResponse,
    StockMovementResponse,
    page_response,
)
from bakery_stock.core.entities import MovementType, StockMovementFilter
from bakery_stock.core.services import StockLedger

router = APIRouter(prefix="/api/stock-movements", tags=["stock-movements"])


@router.get(
    "",
    response_model=PageResponse[StockMovementResponse],
    responses={400: {"model": ErrorResponse}},
)
async def list_stock_movements(
    stock_item_id: str | None = None,
    type: MovementType | None = None,
    user_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: int = 1,
    limit: int | None = None,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> PageResponse[StockMovementResponse]:
    """List movements newest first. Dates without a timezone are taken as UTC."""
    filters = StockMovementFilter(
        stock_item_id=stock_item_id,
        type=type,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit or get_app_settings().ledger.default_page_size,
    )
    result = await ledger.get_movements(filters)
    return page_response(result, StockMovementResponse)


@router.get(
    "/{movement_id}",
    response_model=StockMovementResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_stock_movement(
    movement_id: str,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> StockMovementResponse:
    """Get a single movement."""
    movement = await ledger.get_movement(movement_id)
    return StockMovementResponse.model_validate(movement)
