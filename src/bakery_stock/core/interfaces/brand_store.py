"""Abstract interface for brand and stock item pricing storage."""

from abc import ABC, abstractmethod

from bakery_stock.core.entities import Brand, BrandFilter, Page, StockItemBrand


class IBrandStore(ABC):
    """Interface for brands and stock item brand links."""

    # Brands

    @abstractmethod
    async def create_brand(self, brand: Brand) -> Brand:
        """Create a new brand."""
        pass

    @abstractmethod
    async def get_brand(self, brand_id: str, active_only: bool = True) -> Brand | None:
        """Get brand by ID."""
        pass

    @abstractmethod
    async def list_brands(self, filters: BrandFilter) -> Page[Brand]:
        """List brands matching the filter."""
        pass

    @abstractmethod
    async def update_brand(self, brand: Brand) -> Brand:
        """Update brand fields."""
        pass

    @abstractmethod
    async def soft_delete_brand(self, brand_id: str) -> bool:
        """Mark a brand deleted."""
        pass

    @abstractmethod
    async def restore_brand(self, brand_id: str) -> Brand | None:
        """Clear the brand deletion marker."""
        pass

    # Stock item brand links

    @abstractmethod
    async def add_stock_item_brand(self, link: StockItemBrand) -> StockItemBrand:
        """
        Link a brand to a stock item.

        If link.is_preferred, any other preferred link of the stock item is
        cleared in the same transaction.
        """
        pass

    @abstractmethod
    async def get_stock_item_brand(
        self, stock_item_id: str, brand_id: str
    ) -> StockItemBrand | None:
        """Get the active link between a stock item and a brand."""
        pass

    @abstractmethod
    async def list_stock_item_brands(self, stock_item_id: str) -> list[StockItemBrand]:
        """List active brand links of a stock item."""
        pass

    @abstractmethod
    async def get_preferred_brand(self, stock_item_id: str) -> StockItemBrand | None:
        """Get the preferred active link of a stock item."""
        pass

    @abstractmethod
    async def update_stock_item_brand(self, link: StockItemBrand) -> StockItemBrand:
        """Update prices and preferred flag of a link."""
        pass

    @abstractmethod
    async def set_preferred(self, stock_item_id: str, brand_id: str) -> StockItemBrand | None:
        """Make one link the only preferred link of its stock item."""
        pass

    @abstractmethod
    async def remove_stock_item_brand(self, stock_item_id: str, brand_id: str) -> bool:
        """Soft-remove a link."""
        pass
