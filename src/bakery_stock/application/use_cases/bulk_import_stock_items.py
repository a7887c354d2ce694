"""Bulk Import Stock Items Use Case: create many stock items, reporting per row."""

from dataclasses import dataclass, field

from bakery_stock.application.dto.requests import BulkImportStockItemsRequest
from bakery_stock.application.dto.responses import (
    BulkImportRowResult,
    BulkImportStockItemsResponse,
)
from bakery_stock.config import get_logger
from bakery_stock.core.exceptions import BakeryStockError, DuplicateStockItemError
from bakery_stock.core.services.stock_item_registry import StockItemRegistry

logger = get_logger(__name__)

DUPLICATE_NAME_MESSAGE = "Stock item with this name already exists"


@dataclass
class BulkImportResult:
    """Result of a bulk import."""

    rows: list[BulkImportRowResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.rows if r.success)

    @property
    def failed(self) -> int:
        return len(self.rows) - self.succeeded


class BulkImportStockItemsUseCase:
    """Import stock items one row at a time; a bad row never stops the batch."""

    def __init__(self, registry: StockItemRegistry | None = None):
        self._registry = registry or StockItemRegistry()

    async def execute(
        self, request: BulkImportStockItemsRequest, user_id: str | None = None
    ) -> BulkImportResult:
        """Execute bulk import."""
        logger.info("bulk_import_started", rows=len(request.items))
        result = BulkImportResult()

        for index, row in enumerate(request.items, start=1):
            try:
                item = await self._registry.create(
                    name=row.name,
                    unit_of_measure=row.unit_of_measure,
                    description=row.description,
                    initial_quantity=row.initial_quantity,
                    reorder_threshold=row.reorder_threshold,
                    user_id=user_id,
                )
            except DuplicateStockItemError:
                result.rows.append(
                    BulkImportRowResult(
                        row=index, name=row.name, success=False, error=DUPLICATE_NAME_MESSAGE
                    )
                )
                continue
            except BakeryStockError as e:
                result.rows.append(
                    BulkImportRowResult(row=index, name=row.name, success=False, error=e.message)
                )
                continue

            result.rows.append(
                BulkImportRowResult(row=index, name=item.name, success=True, id=item.id)
            )

        logger.info(
            "bulk_import_complete",
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result

    def to_response(self, result: BulkImportResult) -> BulkImportStockItemsResponse:
        """Convert result to API response."""
        return BulkImportStockItemsResponse(
            total=len(result.rows),
            succeeded=result.succeeded,
            failed=result.failed,
            results=result.rows,
        )
