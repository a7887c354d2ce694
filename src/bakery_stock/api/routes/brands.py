"""Brand endpoints."""

from fastapi import APIRouter, Depends, Response, status

from bakery_stock.api.dependencies import get_app_settings, get_brand_catalog
from bakery_stock.application.dto.requests import CreateBrandRequest, UpdateBrandRequest
from bakery_stock.application.dto.responses import (
    BrandResponse,
    ErrorResponse,
    PageResponse,
    page_response,
)
from bakery_stock.core.entities import BrandFilter
from bakery_stock.core.services import BrandCatalog

router = APIRouter(prefix="/api/brands", tags=["brands"])

NOT_FOUND = {404: {"model": ErrorResponse}}


@router.get("", response_model=PageResponse[BrandResponse])
async def list_brands(
    search: str | None = None,
    is_active: bool | None = None,
    page: int = 1,
    limit: int | None = None,
    include_deleted: bool = False,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> PageResponse[BrandResponse]:
    """List brands, optionally filtered by name and active flag."""
    filters = BrandFilter(
        search=search,
        is_active=is_active,
        page=page,
        limit=limit or get_app_settings().ledger.default_page_size,
        active_only=not include_deleted,
    )
    result = await catalog.list_brands(filters)
    return page_response(result, BrandResponse)


@router.post(
    "",
    response_model=BrandResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_brand(
    request: CreateBrandRequest,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> BrandResponse:
    """Create a brand."""
    brand = await catalog.create_brand(
        request.name, description=request.description, is_active=request.is_active
    )
    return BrandResponse.model_validate(brand)


@router.get("/{brand_id}", response_model=BrandResponse, responses=NOT_FOUND)
async def get_brand(
    brand_id: str,
    include_deleted: bool = False,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> BrandResponse:
    """Get a brand by ID."""
    brand = await catalog.get_brand(brand_id, active_only=not include_deleted)
    return BrandResponse.model_validate(brand)


@router.patch(
    "/{brand_id}",
    response_model=BrandResponse,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND},
)
async def update_brand(
    brand_id: str,
    request: UpdateBrandRequest,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> BrandResponse:
    brand = await catalog.update_brand(brand_id, request.model_dump(exclude_unset=True))
    return BrandResponse.model_validate(brand)


@router.delete("/{brand_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_brand(
    brand_id: str,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> Response:
    """Soft-delete a brand. Its stock item links stop counting as active."""
    await catalog.soft_delete_brand(brand_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{brand_id}/restore", response_model=BrandResponse, responses=NOT_FOUND)
async def restore_brand(
    brand_id: str,
    catalog: BrandCatalog = Depends(get_brand_catalog),
) -> BrandResponse:
    brand = await catalog.restore_brand(brand_id)
    return BrandResponse.model_validate(brand)
