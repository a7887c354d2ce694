"""Brand catalog and per-brand stock item pricing."""

from decimal import Decimal
from typing import Any

from bakery_stock.config import get_settings
from bakery_stock.core.entities import Brand, BrandFilter, Page, StockItemBrand
from bakery_stock.core.exceptions import (
    BrandNotFoundError,
    DuplicateStockItemBrandError,
    StockItemBrandNotFoundError,
    StockItemNotFoundError,
    ValidationError,
)
from bakery_stock.core.interfaces import IBrandStore, IStockItemStore
from bakery_stock.core.services.stock_rules import (
    validate_brand_prices,
    validate_name,
    validate_pagination,
)


BRAND_FIELDS = frozenset({"name", "description", "is_active"})
LINK_FIELDS = frozenset({"price_before_tax", "price_after_tax", "is_preferred"})


class BrandCatalog:
    """Brands, and the prices of stock items per brand."""

    def __init__(
        self,
        brand_store: IBrandStore | None = None,
        stock_item_store: IStockItemStore | None = None,
    ):
        self._brand_store = brand_store
        self._stock_item_store = stock_item_store

    async def _get_brand_store(self) -> IBrandStore:
        if self._brand_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_brand_store

            self._brand_store = await get_brand_store()
        return self._brand_store

    async def _get_stock_item_store(self) -> IStockItemStore:
        if self._stock_item_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_stock_item_store

            self._stock_item_store = await get_stock_item_store()
        return self._stock_item_store

    async def _require_stock_item(self, stock_item_id: str) -> None:
        store = await self._get_stock_item_store()
        if await store.get(stock_item_id) is None:
            raise StockItemNotFoundError(stock_item_id)

    # Brands

    async def create_brand(
        self, name: str, description: str | None = None, is_active: bool = True
    ) -> Brand:
        store = await self._get_brand_store()
        return await store.create_brand(
            Brand(name=validate_name(name), description=description, is_active=is_active)
        )

    async def get_brand(self, brand_id: str, active_only: bool = True) -> Brand:
        store = await self._get_brand_store()
        brand = await store.get_brand(brand_id, active_only=active_only)
        if brand is None:
            raise BrandNotFoundError(brand_id)
        return brand

    async def list_brands(self, filters: BrandFilter) -> Page[Brand]:
        validate_pagination(filters.page, filters.limit, get_settings().ledger.max_page_size)
        store = await self._get_brand_store()
        return await store.list_brands(filters)

    async def update_brand(self, brand_id: str, updates: dict[str, Any]) -> Brand:
        changes = {k: v for k, v in updates.items() if k in BRAND_FIELDS}
        if not changes:
            raise ValidationError(
                "updates", f"at least one of {', '.join(sorted(BRAND_FIELDS))} is required"
            )
        if "name" in changes:
            changes["name"] = validate_name(changes["name"])
        if changes.get("is_active") is None:
            changes.pop("is_active", None)

        brand = await self.get_brand(brand_id)
        for field, value in changes.items():
            setattr(brand, field, value)
        store = await self._get_brand_store()
        return await store.update_brand(brand)

    async def soft_delete_brand(self, brand_id: str) -> None:
        store = await self._get_brand_store()
        if not await store.soft_delete_brand(brand_id):
            raise BrandNotFoundError(brand_id)

    async def restore_brand(self, brand_id: str) -> Brand:
        store = await self._get_brand_store()
        brand = await store.restore_brand(brand_id)
        if brand is None:
            raise BrandNotFoundError(brand_id)
        return brand

    # Stock item pricing

    async def add_brand_to_stock_item(
        self,
        stock_item_id: str,
        brand_id: str,
        price_before_tax: Decimal | int | str,
        price_after_tax: Decimal | int | str,
        is_preferred: bool = False,
    ) -> StockItemBrand:
        """Link a brand to a stock item at the given prices."""
        before, after = validate_brand_prices(price_before_tax, price_after_tax)
        await self._require_stock_item(stock_item_id)
        await self.get_brand(brand_id)

        store = await self._get_brand_store()
        if await store.get_stock_item_brand(stock_item_id, brand_id) is not None:
            raise DuplicateStockItemBrandError(stock_item_id, brand_id)

        return await store.add_stock_item_brand(
            StockItemBrand(
                stock_item_id=stock_item_id,
                brand_id=brand_id,
                price_before_tax=before,
                price_after_tax=after,
                is_preferred=is_preferred,
            )
        )

    async def get_stock_item_brand(self, stock_item_id: str, brand_id: str) -> StockItemBrand:
        store = await self._get_brand_store()
        link = await store.get_stock_item_brand(stock_item_id, brand_id)
        if link is None:
            raise StockItemBrandNotFoundError(stock_item_id, brand_id)
        return link

    async def update_stock_item_brand(
        self, stock_item_id: str, brand_id: str, updates: dict[str, Any]
    ) -> StockItemBrand:
        """Change prices and/or the preferred flag of an existing link."""
        changes = {k: v for k, v in updates.items() if k in LINK_FIELDS and v is not None}
        if not changes:
            raise ValidationError(
                "updates", f"at least one of {', '.join(sorted(LINK_FIELDS))} is required"
            )

        link = await self.get_stock_item_brand(stock_item_id, brand_id)
        before, after = validate_brand_prices(
            changes.get("price_before_tax", link.price_before_tax),
            changes.get("price_after_tax", link.price_after_tax),
        )
        link.price_before_tax = before
        link.price_after_tax = after
        link.is_preferred = changes.get("is_preferred", link.is_preferred)

        store = await self._get_brand_store()
        return await store.update_stock_item_brand(link)

    async def list_stock_item_brands(self, stock_item_id: str) -> list[StockItemBrand]:
        await self._require_stock_item(stock_item_id)
        store = await self._get_brand_store()
        return await store.list_stock_item_brands(stock_item_id)

    async def get_preferred_brand(self, stock_item_id: str) -> StockItemBrand | None:
        store = await self._get_brand_store()
        return await store.get_preferred_brand(stock_item_id)

    async def set_preferred_brand(self, stock_item_id: str, brand_id: str) -> StockItemBrand:
        """Make this link the stock item's only preferred brand."""
        store = await self._get_brand_store()
        link = await store.set_preferred(stock_item_id, brand_id)
        if link is None:
            raise StockItemBrandNotFoundError(stock_item_id, brand_id)
        return link

    async def remove_brand_from_stock_item(self, stock_item_id: str, brand_id: str) -> None:
        store = await self._get_brand_store()
        if not await store.remove_stock_item_brand(stock_item_id, brand_id):
            raise StockItemBrandNotFoundError(stock_item_id, brand_id)
