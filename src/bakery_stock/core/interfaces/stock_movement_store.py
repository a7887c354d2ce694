"""Abstract interface for the stock movement ledger storage."""

from abc import ABC, abstractmethod
from decimal import Decimal

from bakery_stock.core.entities import Page, StockItem, StockMovement, StockMovementFilter


class IStockMovementStore(ABC):
    """
    Interface for append-only movement persistence.

    There is deliberately no update or delete operation.
    """

    @abstractmethod
    async def record(
        self, movement: StockMovement, item: StockItem
    ) -> tuple[StockMovement, StockItem]:
        """
        Append a movement and write the stock item's new quantity and status.

        Both writes happen in one transaction. The item row is only updated
        if its stored version still equals item.version; otherwise
        StaleStockItemError is raised and nothing is written.
        """
        pass

    @abstractmethod
    async def get(self, movement_id: str) -> StockMovement | None:
        """Get movement by ID."""
        pass

    @abstractmethod
    async def list(self, filters: StockMovementFilter) -> Page[StockMovement]:
        """List movements matching the filter, newest first."""
        pass

    @abstractmethod
    async def sum_quantity(self, stock_item_id: str) -> Decimal:
        """Sum of all movement deltas recorded for a stock item."""
        pass
