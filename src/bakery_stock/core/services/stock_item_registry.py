"""
Stock item registry.

Creates, edits, lists, soft-deletes and restores stock items. Quantity is
never edited here; it only changes through the stock ledger. Deletion is
refused while active recipes still reference the item.
"""

from decimal import Decimal
from typing import Any

from bakery_stock.config import get_logger, get_settings
from bakery_stock.core.entities import (
    DeletionCheck,
    MovementType,
    Page,
    StockItem,
    StockItemFilter,
    new_id,
)
from bakery_stock.core.exceptions import (
    DuplicateStockItemError,
    StockItemInUseError,
    StockItemNotFoundError,
    ValidationError,
)
from bakery_stock.core.interfaces import IRecipeStore, IStockItemStore
from bakery_stock.core.services.concurrency import stale_retry
from bakery_stock.core.services.stock_rules import (
    build_movement,
    validate_name,
    validate_non_negative,
    validate_pagination,
    validate_unit,
    with_status,
)

logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "description", "unit_of_measure", "reorder_threshold"})
OPENING_STOCK_REASON = "Initial stock"


class StockItemRegistry:
    """Stock item lifecycle with derived status and deletion protection."""

    def __init__(
        self,
        stock_item_store: IStockItemStore | None = None,
        recipe_store: IRecipeStore | None = None,
    ):
        self._stock_item_store = stock_item_store
        self._recipe_store = recipe_store

    async def _get_stock_item_store(self) -> IStockItemStore:
        if self._stock_item_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_stock_item_store

            self._stock_item_store = await get_stock_item_store()
        return self._stock_item_store

    async def _get_recipe_store(self) -> IRecipeStore:
        if self._recipe_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_recipe_store

            self._recipe_store = await get_recipe_store()
        return self._recipe_store

    async def create(
        self,
        name: str,
        unit_of_measure: str,
        description: str | None = None,
        initial_quantity: Decimal | int | str = 0,
        reorder_threshold: Decimal | int | str | None = None,
        user_id: str | None = None,
    ) -> StockItem:
        """
        Register a new stock item.

        A positive initial quantity is booked as a RECEIVED opening movement
        in the same transaction, so the ledger always sums to the item's
        quantity.
        """
        name = validate_name(name)
        unit = validate_unit(unit_of_measure)
        quantity = validate_non_negative(initial_quantity, "initial_quantity")
        threshold = (
            validate_non_negative(reorder_threshold, "reorder_threshold")
            if reorder_threshold is not None
            else None
        )

        store = await self._get_stock_item_store()
        if await store.get_by_name(name) is not None:
            raise DuplicateStockItemError(name)

        item = with_status(
            StockItem(
                id=new_id(),
                name=name,
                description=description,
                unit_of_measure=unit,
                current_quantity=quantity,
                reorder_threshold=threshold,
            )
        )

        opening = None
        if quantity > 0:
            opening = build_movement(
                item.model_copy(update={"current_quantity": Decimal("0.000")}),
                MovementType.RECEIVED,
                quantity,
                user_id=user_id or get_settings().ledger.default_user_id,
                reason=OPENING_STOCK_REASON,
            )

        return await store.create(item, opening_movement=opening)

    async def get(self, stock_item_id: str, active_only: bool = True) -> StockItem:
        store = await self._get_stock_item_store()
        item = await store.get(stock_item_id, active_only=active_only)
        if item is None:
            raise StockItemNotFoundError(stock_item_id)
        return item

    async def list(self, filters: StockItemFilter) -> Page[StockItem]:
        validate_pagination(filters.page, filters.limit, get_settings().ledger.max_page_size)
        store = await self._get_stock_item_store()
        return await store.list(filters)

    async def update(self, stock_item_id: str, updates: dict[str, Any]) -> StockItem:
        """
        Apply a partial update of name, description, unit or reorder threshold.

        Keys present with a None value clear optional fields. Status is
        recomputed against the stored quantity.
        """
        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS}
        if not changes:
            raise ValidationError(
                "updates",
                f"at least one of {', '.join(sorted(UPDATABLE_FIELDS))} is required",
            )
        if "name" in changes:
            changes["name"] = validate_name(changes["name"])
        if "unit_of_measure" in changes:
            changes["unit_of_measure"] = validate_unit(changes["unit_of_measure"])
        if changes.get("reorder_threshold") is not None:
            changes["reorder_threshold"] = validate_non_negative(
                changes["reorder_threshold"], "reorder_threshold"
            )

        store = await self._get_stock_item_store()

        @stale_retry()
        async def apply() -> StockItem:
            item = await self.get(stock_item_id)
            if "name" in changes and changes["name"] != item.name:
                existing = await store.get_by_name(changes["name"])
                if existing is not None and existing.id != item.id:
                    raise DuplicateStockItemError(changes["name"])
            for field, value in changes.items():
                setattr(item, field, value)
            return await store.update(with_status(item))

        updated = await apply()
        logger.info(
            "stock_item_edited",
            stock_item_id=stock_item_id,
            fields=sorted(changes),
            status=updated.status.value,
        )
        return updated

    async def check_can_delete(self, stock_item_id: str) -> DeletionCheck:
        """Count distinct products whose active recipes use the item."""
        await self.get(stock_item_id)
        recipe_store = await self._get_recipe_store()
        product_count = await recipe_store.count_products_using(stock_item_id)
        return DeletionCheck(can_delete=product_count == 0, product_count=product_count)

    async def soft_delete(self, stock_item_id: str) -> None:
        """Delete the item unless an active recipe uses it, checked atomically by the store."""
        store = await self._get_stock_item_store()
        try:
            deleted = await store.soft_delete(stock_item_id)
        except StockItemInUseError as e:
            logger.warning(
                "stock_item_delete_refused",
                stock_item_id=stock_item_id,
                product_count=e.details["product_count"],
            )
            raise
        if not deleted:
            raise StockItemNotFoundError(stock_item_id)

    async def restore(self, stock_item_id: str) -> StockItem:
        store = await self._get_stock_item_store()
        item = await store.restore(stock_item_id)
        if item is None:
            raise StockItemNotFoundError(stock_item_id)
        return item
