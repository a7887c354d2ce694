"""Product, recipe and cost endpoints."""

from fastapi import APIRouter, Depends, Response, status

from bakery_stock.api.dependencies import (
    get_app_settings,
    get_product_cost_use_case,
    get_recipe_service,
)
from bakery_stock.application.dto.requests import (
    AddIngredientRequest,
    CreateProductRequest,
    UpdateIngredientRequest,
)
from bakery_stock.application.dto.responses import (
    ErrorResponse,
    PageResponse,
    ProductCostResponse,
    ProductResponse,
    ProductStockItemResponse,
    RecipeResponse,
    page_response,
)
from bakery_stock.application.use_cases import CalculateProductCostUseCase
from bakery_stock.core.entities import ProductFilter
from bakery_stock.core.services import RecipeService

router = APIRouter(prefix="/api/products", tags=["products"])

NOT_FOUND = {404: {"model": ErrorResponse}}


@router.get("", response_model=PageResponse[ProductResponse])
async def list_products(
    search: str | None = None,
    page: int = 1,
    limit: int | None = None,
    service: RecipeService = Depends(get_recipe_service),
) -> PageResponse[ProductResponse]:
    filters = ProductFilter(
        search=search,
        page=page,
        limit=limit or get_app_settings().ledger.default_page_size,
    )
    result = await service.list_products(filters)
    return page_response(result, ProductResponse)


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_product(
    request: CreateProductRequest,
    service: RecipeService = Depends(get_recipe_service),
) -> ProductResponse:
    """Create a product."""
    product = await service.create_product(
        request.name, description=request.description, price=request.price
    )
    return ProductResponse.model_validate(product)


@router.get("/{product_id}", response_model=ProductResponse, responses=NOT_FOUND)
async def get_product(
    product_id: str,
    service: RecipeService = Depends(get_recipe_service),
) -> ProductResponse:
    product = await service.get_product(product_id)
    return ProductResponse.model_validate(product)


@router.get("/{product_id}/stock-items", response_model=RecipeResponse, responses=NOT_FOUND)
async def get_recipe(
    product_id: str,
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    """Get the product with its ingredient list."""
    recipe = await service.get_recipe(product_id)
    return RecipeResponse.model_validate(recipe)


@router.post(
    "/{product_id}/stock-items",
    response_model=ProductStockItemResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND, 409: {"model": ErrorResponse}},
)
async def add_ingredient(
    product_id: str,
    request: AddIngredientRequest,
    service: RecipeService = Depends(get_recipe_service),
) -> ProductStockItemResponse:
    """Add a stock item to the product's recipe."""
    line = await service.add_ingredient(
        product_id,
        request.stock_item_id,
        request.quantity,
        preferred_brand_id=request.preferred_brand_id,
        notes=request.notes,
    )
    return ProductStockItemResponse.model_validate(line)


@router.patch(
    "/{product_id}/stock-items/{stock_item_id}",
    response_model=ProductStockItemResponse,
    responses={400: {"model": ErrorResponse}, **NOT_FOUND},
)
async def update_ingredient(
    product_id: str,
    stock_item_id: str,
    request: UpdateIngredientRequest,
    service: RecipeService = Depends(get_recipe_service),
) -> ProductStockItemResponse:
    """Change an ingredient's quantity, brand override or notes."""
    line = await service.update_ingredient(
        product_id, stock_item_id, request.model_dump(exclude_unset=True)
    )
    return ProductStockItemResponse.model_validate(line)


@router.delete(
    "/{product_id}/stock-items/{stock_item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=NOT_FOUND,
)
async def remove_ingredient(
    product_id: str,
    stock_item_id: str,
    service: RecipeService = Depends(get_recipe_service),
) -> Response:
    await service.remove_ingredient(product_id, stock_item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{product_id}/cost",
    response_model=ProductCostResponse,
    responses={**NOT_FOUND, 422: {"model": ErrorResponse}},
)
async def get_product_cost(
    product_id: str,
    use_case: CalculateProductCostUseCase = Depends(get_product_cost_use_case),
) -> ProductCostResponse:
    """Material cost of one unit, priced from each ingredient's brand."""
    cost = await use_case.execute(product_id)
    return ProductCostResponse.model_validate(cost)
