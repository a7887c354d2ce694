"""Products and their recipes (bill of materials)."""

from decimal import Decimal
from typing import Any

from bakery_stock.config import get_settings
from bakery_stock.core.entities import (
    Page,
    Product,
    ProductFilter,
    ProductStockItem,
    Recipe,
)
from bakery_stock.core.exceptions import (
    DuplicateIngredientError,
    ProductNotFoundError,
    ProductStockItemNotFoundError,
    StockItemNotFoundError,
    ValidationError,
)
from bakery_stock.core.interfaces import (
    IBrandStore,
    IProductStore,
    IRecipeStore,
    IStockItemStore,
)
from bakery_stock.core.services.stock_rules import (
    validate_name,
    validate_non_negative,
    validate_pagination,
    validate_positive,
)


INGREDIENT_FIELDS = frozenset({"quantity", "preferred_brand_id", "notes"})


class RecipeService:
    """Maintains which stock items, in what amounts, make up each product."""

    def __init__(
        self,
        product_store: IProductStore | None = None,
        recipe_store: IRecipeStore | None = None,
        stock_item_store: IStockItemStore | None = None,
        brand_store: IBrandStore | None = None,
    ):
        self._product_store = product_store
        self._recipe_store = recipe_store
        self._stock_item_store = stock_item_store
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

    async def _get_stock_item_store(self) -> IStockItemStore:
        if self._stock_item_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_stock_item_store

            self._stock_item_store = await get_stock_item_store()
        return self._stock_item_store

    async def _get_brand_store(self) -> IBrandStore:
        if self._brand_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_brand_store

            self._brand_store = await get_brand_store()
        return self._brand_store

    # Products

    async def create_product(
        self,
        name: str,
        description: str | None = None,
        price: Decimal | int | str = 0,
    ) -> Product:
        price = validate_non_negative(price, "price")
        store = await self._get_product_store()
        return await store.create(
            Product(name=validate_name(name), description=description, price=price)
        )

    async def get_product(self, product_id: str) -> Product:
        store = await self._get_product_store()
        product = await store.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def list_products(self, filters: ProductFilter) -> Page[Product]:
        validate_pagination(filters.page, filters.limit, get_settings().ledger.max_page_size)
        store = await self._get_product_store()
        return await store.list(filters)

    # Ingredients

    async def _check_brand_linked(self, stock_item_id: str, brand_id: str) -> None:
        brand_store = await self._get_brand_store()
        if await brand_store.get_stock_item_brand(stock_item_id, brand_id) is None:
            raise ValidationError(
                "preferred_brand_id", "brand is not linked to this stock item", brand_id
            )

    async def add_ingredient(
        self,
        product_id: str,
        stock_item_id: str,
        quantity: Decimal | int | str,
        preferred_brand_id: str | None = None,
        notes: str | None = None,
    ) -> ProductStockItem:
        """Add a stock item to a product's recipe."""
        amount = validate_positive(quantity)
        await self.get_product(product_id)

        stock_item_store = await self._get_stock_item_store()
        if await stock_item_store.get(stock_item_id) is None:
            raise StockItemNotFoundError(stock_item_id)
        if preferred_brand_id:
            await self._check_brand_linked(stock_item_id, preferred_brand_id)

        recipe_store = await self._get_recipe_store()
        if await recipe_store.get(product_id, stock_item_id) is not None:
            raise DuplicateIngredientError(product_id, stock_item_id)

        return await recipe_store.add(
            ProductStockItem(
                product_id=product_id,
                stock_item_id=stock_item_id,
                quantity=amount,
                preferred_brand_id=preferred_brand_id or None,
                notes=notes,
            )
        )

    async def update_ingredient(
        self, product_id: str, stock_item_id: str, updates: dict[str, Any]
    ) -> ProductStockItem:
        """
        Change quantity, brand override or notes of a recipe line.

        A preferred_brand_id key set to None removes the override.
        """
        changes = {k: v for k, v in updates.items() if k in INGREDIENT_FIELDS}
        if not changes:
            raise ValidationError(
                "updates", f"at least one of {', '.join(sorted(INGREDIENT_FIELDS))} is required"
            )

        recipe_store = await self._get_recipe_store()
        line = await recipe_store.get(product_id, stock_item_id)
        if line is None:
            raise ProductStockItemNotFoundError(product_id, stock_item_id)

        if "quantity" in changes:
            line.quantity = validate_positive(changes["quantity"])
        if "preferred_brand_id" in changes:
            brand_id = changes["preferred_brand_id"] or None
            if brand_id:
                await self._check_brand_linked(stock_item_id, brand_id)
            line.preferred_brand_id = brand_id
        if "notes" in changes:
            line.notes = changes["notes"]

        return await recipe_store.update(line)

    async def remove_ingredient(self, product_id: str, stock_item_id: str) -> None:
        recipe_store = await self._get_recipe_store()
        if not await recipe_store.remove(product_id, stock_item_id):
            raise ProductStockItemNotFoundError(product_id, stock_item_id)

    async def get_recipe(self, product_id: str) -> Recipe:
        product = await self.get_product(product_id)
        recipe_store = await self._get_recipe_store()
        ingredients = await recipe_store.list_for_product(product_id)
        return Recipe(product=product, ingredients=ingredients)
