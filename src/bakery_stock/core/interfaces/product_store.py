"""Abstract interfaces for product and recipe storage."""

from abc import ABC, abstractmethod

from bakery_stock.core.entities import Page, Product, ProductFilter, ProductStockItem


class IProductStore(ABC):
    """Interface for product persistence."""

    @abstractmethod
    async def create(self, product: Product) -> Product:
        """Create a new product."""
        pass

    @abstractmethod
    async def get(self, product_id: str, active_only: bool = True) -> Product | None:
        """Get product by ID."""
        pass

    @abstractmethod
    async def list(self, filters: ProductFilter) -> Page[Product]:
        """List products matching the filter."""
        pass


class IRecipeStore(ABC):
    """Interface for product recipe lines (bill of materials)."""

    @abstractmethod
    async def add(self, line: ProductStockItem) -> ProductStockItem:
        """
        Add an ingredient line.

        Raises StockItemNotFoundError when the stock item is not active and
        DuplicateIngredientError on an active pair.
        """
        pass

    @abstractmethod
    async def get(self, product_id: str, stock_item_id: str) -> ProductStockItem | None:
        """Get the active line for a product and stock item."""
        pass

    @abstractmethod
    async def list_for_product(self, product_id: str) -> list[ProductStockItem]:
        """List active lines of a product with joined names."""
        pass

    @abstractmethod
    async def update(self, line: ProductStockItem) -> ProductStockItem:
        """Update quantity, preferred brand and notes of a line."""
        pass

    @abstractmethod
    async def remove(self, product_id: str, stock_item_id: str) -> bool:
        """Soft-remove a line."""
        pass

    @abstractmethod
    async def count_products_using(self, stock_item_id: str) -> int:
        """Count distinct products with active lines referencing the stock item."""
        pass
