"""Stock item endpoints: registry, ledger movements and brand pricing."""

from fastapi import APIRouter, Depends, Query, Response, status

from bakery_stock.api.dependencies import (
    get_app_settings,
    get_brand_catalog,
    get_bulk_import_use_case,
    get_stock_item_registry,
    get_stock_ledger,
    get_user_id,
)
from bakery_stock.application.dto.requests import (
    AddStockItemBrandRequest,
    AdjustStockRequest,
    BulkImportStockItemsRequest,
    ConsumeStockRequest,
    CreateStockItemRequest,
    ReceiveStockRequest,
    RecordLossRequest,
    UpdateStockItemBrandRequest,
    UpdateStockItemRequest,
)
from bakery_stock.application.dto.responses import (
    BulkImportStockItemsResponse,
    DeletionCheckResponse,
    ErrorResponse,
    PageResponse,
    ReconciliationResponse,
    StockItemBrandResponse,
    StockItemResponse,
    StockMovementResultResponse,
    page_response,
)
from bakery_stock.application.use_cases import BulkImportStockItemsUseCase
from bakery_stock.core.entities import StockItemFilter, StockItemStatus
from bakery_stock.core.entities.filters import SortOrder, StockItemSortField
from bakery_stock.core.services import BrandCatalog, StockItemRegistry, StockLedger

router = APIRouter(prefix="/api/stock-items", tags=["stock-items"])

NOT_FOUND = {404: {"model": ErrorResponse}}
BAD_REQUEST = {400: {"model": ErrorResponse}}


# Registry


@router.get("", response_model=PageResponse[StockItemResponse])
async def list_stock_items(
    status_filter: StockItemStatus | None = Query(default=None, alias="status"),
    search: str | None = None,
    low_stock_only: bool = False,
    sort_by: StockItemSortField = "created_at",
    sort_order: SortOrder = "desc",
    page: int = 1,
    limit: int | None = None,
    include_deleted: bool = False,
    registry: StockItemRegistry = Depends(get_stock_item_registry),
) -> PageResponse[StockItemResponse]:
    """List stock items with filtering, sorting and pagination."""
    filters = StockItemFilter(
        status=status_filter,
        search=search,
        low_stock_only=low_stock_only,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit or get_app_settings().ledger.default_page_size,
        active_only=not include_deleted,
    )
    result = await registry.list(filters)
    return page_response(result, StockItemResponse)


@router.post(
    "",
    response_model=StockItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, 409: {"model": ErrorResponse}},
)
async def create_stock_item(
    request: CreateStockItemRequest,
    user_id: str = Depends(get_user_id),
    registry: StockItemRegistry = Depends(get_stock_item_registry),
) -> StockItemResponse:
    """Register a stock item. A positive initial quantity is booked as received stock."""
    item = await registry.create(
        name=request.name,
        unit_of_measure=request.unit_of_measure,
        description=request.description,
        initial_quantity=request.initial_quantity,
        reorder_threshold=request.reorder_threshold,
        user_id=user_id,
    )
    return StockItemResponse.model_validate(item)


@router.post("/bulk-import", response_model=BulkImportStockItemsResponse)
async def bulk_import_stock_items(
    request: BulkImportStockItemsRequest,
    user_id: str = Depends(get_user_id),
    use_case: BulkImportStockItemsUseCase = Depends(get_bulk_import_use_case),
) -> BulkImportStockItemsResponse:
    """Create many stock items, reporting success or failure per row."""
    result = await use_case.execute(request, user_id=user_id)
    return use_case.to_response(result)


@router.get("/{stock_item_id}", response_model=StockItemResponse, responses=NOT_FOUND)
async def get_stock_item(
    stock_item_id: str,
    include_deleted: bool = False,
    registry: StockItemRegistry = Depends(get_stock_item_registry),
) -> StockItemResponse:
    """Get a stock item by ID."""
    item = await registry.get(stock_item_id, active_only=not include_deleted)
    return StockItemResponse.model_validate(item)


@router.patch(
    "/{stock_item_id}",
    response_model=StockItemResponse,
    responses={**BAD_REQUEST, **NOT_FOUND, 409: {"model": ErrorResponse}},
)
async def update_stock_item(
    stock_item_id: str,
    request: UpdateStockItemRequest,
    registry: StockItemRegistry = Depends(get_stock_item_registry),
) -> StockItemResponse:
    """Edit name, description, unit or reorder threshold. Quantity changes go through movements."""
    item = await registry.update(stock_item_id, request.model_dump(exclude_unset=True))
    return StockItemResponse.model_validate(item)


@router.delete(
    "/{stock_item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={**NOT_FOUND, 409: {"model": ErrorResponse}},
)
async def delete_stock_item(
    stock_item_id: str,
    registry: StockItemRegistry = Depends(get_stock_item_registry),
) -> Response:
    """Soft-delete a stock item. Refused while product recipes use it."""
    await registry.soft_delete(stock_item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{stock_item_id}/restore", response_model=StockItemResponse, responses=NOT_FOUND)
async def restore_stock_item(
    stock_item_id: str,
    registry: StockItemRegistry = Depends(get_stock_item_registry),
) -> StockItemResponse:
    """Restore a soft-deleted stock item."""
    item = await registry.restore(stock_item_id)
    return StockItemResponse.model_validate(item)


@router.get(
    "/{stock_item_id}/deletion-protection",
    response_model=DeletionCheckResponse,
    responses=NOT_FOUND,
)
async def check_deletion_protection(
    stock_item_id: str,
    registry: StockItemRegistry = Depends(get_stock_item_registry),
) -> DeletionCheckResponse:
    """Report whether the stock item can be deleted and how many products use it."""
    check = await registry.check_can_delete(stock_item_id)
    return DeletionCheckResponse.model_validate(check)


# Ledger


@router.post(
    "/{stock_item_id}/receive",
    response_model=StockMovementResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def receive_stock(
    stock_item_id: str,
    request: ReceiveStockRequest,
    user_id: str = Depends(get_user_id),
    ledger: StockLedger = Depends(get_stock_ledger),
) -> StockMovementResultResponse:
    """Book a delivery (RECEIVED movement)."""
    result = await ledger.receive(
        stock_item_id,
        request.quantity,
        reason=request.reason,
        user_id=user_id,
        reference_type=request.reference_type,
        reference_id=request.reference_id,
    )
    return StockMovementResultResponse.model_validate(result)


@router.post(
    "/{stock_item_id}/adjust",
    response_model=StockMovementResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def adjust_stock(
    stock_item_id: str,
    request: AdjustStockRequest,
    user_id: str = Depends(get_user_id),
    ledger: StockLedger = Depends(get_stock_ledger),
) -> StockMovementResultResponse:
    """Book a signed stock correction (ADJUSTED movement). A reason is required."""
    result = await ledger.adjust(
        stock_item_id, request.quantity, reason=request.reason, user_id=user_id
    )
    return StockMovementResultResponse.model_validate(result)


@router.post(
    "/{stock_item_id}/consume",
    response_model=StockMovementResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **NOT_FOUND, 422: {"model": ErrorResponse}},
)
async def consume_stock(
    stock_item_id: str,
    request: ConsumeStockRequest,
    user_id: str = Depends(get_user_id),
    ledger: StockLedger = Depends(get_stock_ledger),
) -> StockMovementResultResponse:
    """Book usage in production (USED movement) with a balance check."""
    result = await ledger.consume(
        stock_item_id,
        request.quantity,
        reference_type=request.reference_type,
        reference_id=request.reference_id,
        user_id=user_id,
        reason=request.reason,
    )
    return StockMovementResultResponse.model_validate(result)


@router.post(
    "/{stock_item_id}/loss",
    response_model=StockMovementResultResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def record_loss(
    stock_item_id: str,
    request: RecordLossRequest,
    user_id: str = Depends(get_user_id),
    ledger: StockLedger = Depends(get_stock_ledger),
) -> StockMovementResultResponse:
    """Book damaged or expired stock. A reason is required."""
    result = await ledger.record_loss(
        stock_item_id, request.type, request.quantity, reason=request.reason, user_id=user_id
    )
    return StockMovementResultResponse.model_validate(result)


@router.get(
    "/{stock_item_id}/reconcile",
    response_model=ReconciliationResponse,
    responses=NOT_FOUND,
)
async def reconcile_stock_item(
    stock_item_id: str,
    ledger: StockLedger = Depends(get_stock_ledger),
) -> ReconciliationResponse:
    """Compare the stored quantity with the sum of the item's movements."""
    result = await ledger.reconcile(stock_item_id)
    return ReconciliationResponse.model_validate(result)


# Brand pricing


@router.get(
    "/{stock_item_id}/brands",
    response_model=list[StockItemBrandResponse],
    responses=NOT_FOUND,
)
async def list_stock_item_brands(
    stock_item_id: str,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> list[StockItemBrandResponse]:
    """List the brands a stock item can be bought from, with prices."""
    links = await catalog.list_stock_item_brands(stock_item_id)
    return [StockItemBrandResponse.model_validate(link) for link in links]


@router.post(
    "/{stock_item_id}/brands",
    response_model=StockItemBrandResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **NOT_FOUND, 409: {"model": ErrorResponse}},
)
async def add_stock_item_brand(
    stock_item_id: str,
    request: AddStockItemBrandRequest,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> StockItemBrandResponse:
    """Price a stock item for a brand."""
    link = await catalog.add_brand_to_stock_item(
        stock_item_id,
        request.brand_id,
        price_before_tax=request.price_before_tax,
        price_after_tax=request.price_after_tax,
        is_preferred=request.is_preferred,
    )
    return StockItemBrandResponse.model_validate(link)


@router.patch(
    "/{stock_item_id}/brands/{brand_id}",
    response_model=StockItemBrandResponse,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def update_stock_item_brand(
    stock_item_id: str,
    brand_id: str,
    request: UpdateStockItemBrandRequest,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> StockItemBrandResponse:
    """Change the prices or preferred flag of a brand link."""
    link = await catalog.update_stock_item_brand(
        stock_item_id, brand_id, request.model_dump(exclude_unset=True)
    )
    return StockItemBrandResponse.model_validate(link)


@router.delete(
    "/{stock_item_id}/brands/{brand_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
)
async def remove_stock_item_brand(
    stock_item_id: str,
    brand_id: str,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> Response:
    """Remove a brand from a stock item."""
    await catalog.remove_brand_from_stock_item(stock_item_id, brand_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{stock_item_id}/brands/{brand_id}/set-preferred",
    response_model=StockItemBrandResponse,
    responses=NOT_FOUND,
)
async def set_preferred_brand(
    stock_item_id: str,
    brand_id: str,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> StockItemBrandResponse:
    """Make this brand the stock item's only preferred brand."""
    link = await catalog.set_preferred_brand(stock_item_id, brand_id)
    return StockItemBrandResponse.model_validate(link)
