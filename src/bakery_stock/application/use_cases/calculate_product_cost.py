"""Calculate Product Cost Use Case: material cost of one unit of a product."""

from bakery_stock.config import get_logger
from bakery_stock.core.entities import ProductCost, StockItemBrand
from bakery_stock.core.exceptions import ProductNotFoundError
from bakery_stock.core.interfaces import IBrandStore, IProductStore, IRecipeStore
from bakery_stock.core.services.costing import compute_product_cost

logger = get_logger(__name__)


class CalculateProductCostUseCase:
    """Price every recipe line from its brand and sum the result."""

    def __init__(
        self,
        product_store: IProductStore | None = None,
        recipe_store: IRecipeStore | None = None,
        brand_store: IBrandStore | None = None,
    ):
        self._product_store = product_store
        self._recipe_store = recipe_store
        self._brand_store = brand_store

    async def _get_product_store(self) -> IProductStore:
        if self._product_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_product_store

            self._product_store = await get_product_store()
        return self._product_store

    async def _get_recipe_store(self) -> IRecipeStore:
        if self._recipe_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_recipe_store

            self._recipe_store = await get_recipe_store()
        return self._recipe_store

    async def _get_brand_store(self) -> IBrandStore:
        if self._brand_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_brand_store

            self._brand_store = await get_brand_store()
        return self._brand_store

    async def execute(self, product_id: str) -> ProductCost:
        """Execute product cost calculation."""
        product_store = await self._get_product_store()
        product = await product_store.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        recipe_store = await self._get_recipe_store()
        brand_store = await self._get_brand_store()
        ingredients = await recipe_store.list_for_product(product_id)

        # Load the brand links each ingredient may be priced from
        overrides: dict[str, StockItemBrand | None] = {}
        preferred: dict[str, StockItemBrand | None] = {}
        for ingredient in ingredients:
            if ingredient.preferred_brand_id:
                overrides[ingredient.stock_item_id] = await brand_store.get_stock_item_brand(
                    ingredient.stock_item_id, ingredient.preferred_brand_id
                )
            preferred[ingredient.stock_item_id] = await brand_store.get_preferred_brand(
                ingredient.stock_item_id
            )

        cost = compute_product_cost(product, ingredients, overrides, preferred)
        logger.info(
            "product_cost_calculated",
            product_id=product_id,
            ingredients=len(ingredients),
            total_cost=str(cost.total_cost),
        )
        return cost
