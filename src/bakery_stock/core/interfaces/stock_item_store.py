"""Abstract interface for stock item storage."""

from abc import ABC, abstractmethod

from bakery_stock.core.entities import Page, StockItem, StockItemFilter, StockMovement


class IStockItemStore(ABC):
    """Interface for stock item persistence."""

    @abstractmethod
    async def create(
        self, item: StockItem, opening_movement: StockMovement | None = None
    ) -> StockItem:
        """
        Create a new stock item.

        When an opening movement is given it is written in the same
        transaction. Raises DuplicateStockItemError on a taken name.
        """
        pass

    @abstractmethod
    async def get(self, item_id: str, active_only: bool = True) -> StockItem | None:
        """Get stock item by ID."""
        pass

    @abstractmethod
    async def get_by_name(self, name: str, active_only: bool = False) -> StockItem | None:
        """Get stock item by exact name."""
        pass

    @abstractmethod
    async def list(self, filters: StockItemFilter) -> Page[StockItem]:
        """List stock items matching the filter."""
        pass

    @abstractmethod
    async def update(self, item: StockItem) -> StockItem:
        """
        Update descriptive fields and reorder threshold.

        Never touches current_quantity. Raises StaleStockItemError when the
        stored version differs from item.version.
        """
        pass

    @abstractmethod
    async def soft_delete(self, item_id: str) -> bool:
        """
        Mark a stock item deleted.

        Raises StockItemInUseError while active recipe lines reference it.
        Returns False if not found or already deleted.
        """
        pass

    @abstractmethod
    async def restore(self, item_id: str) -> StockItem | None:
        """Clear the deletion marker. Returns None if not found or not deleted."""
        pass
