"""
Stock movement ledger.

Every quantity change goes through here: load the item, validate, compute
the new quantity and status, then append the movement and write the item
in one transaction. Writers to the same item are serialized in-process
by a per-item lock and across connections by the item's version column;
a stale version is retried from the read.
"""

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from bakery_stock.config import get_logger, get_settings
from bakery_stock.core.entities import (
    LOSS_TYPES,
    MovementType,
    Page,
    StockItem,
    StockMovement,
    StockMovementFilter,
)
from bakery_stock.core.exceptions import (
    InsufficientStockError,
    StockItemNotFoundError,
    StockMovementNotFoundError,
    ValidationError,
)
from bakery_stock.core.interfaces import IStockItemStore, IStockMovementStore
from bakery_stock.core.services.concurrency import ItemLocks, stale_retry
from bakery_stock.core.services.stock_rules import (
    build_movement,
    parse_quantity,
    validate_pagination,
    validate_positive,
    validate_reason,
    with_status,
)

logger = get_logger(__name__)


@dataclass
class StockMovementResult:
    """A recorded movement and the stock item state it produced."""

    movement: StockMovement
    stock_item: StockItem


@dataclass
class LedgerReconciliation:
    """Cached item quantity compared with the sum of its movements."""

    stock_item_id: str
    current_quantity: Decimal
    ledger_quantity: Decimal

    @property
    def consistent(self) -> bool:
        return self.current_quantity == self.ledger_quantity


class StockLedger:
    """Append-only movement ledger over stock item quantities."""

    def __init__(
        self,
        stock_item_store: IStockItemStore | None = None,
        movement_store: IStockMovementStore | None = None,
        locks: ItemLocks | None = None,
    ):
        self._stock_item_store = stock_item_store
        self._movement_store = movement_store
        self._locks = locks if locks is not None else ItemLocks()

    async def _get_stock_item_store(self) -> IStockItemStore:
        if self._stock_item_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_stock_item_store

            self._stock_item_store = await get_stock_item_store()
        return self._stock_item_store

    async def _get_movement_store(self) -> IStockMovementStore:
        if self._movement_store is None:
            from bakery_stock.infrastructure.storage.sqlite import get_stock_movement_store

            self._movement_store = await get_stock_movement_store()
        return self._movement_store

    async def _apply(
        self,
        stock_item_id: str,
        make_movement: Callable[[StockItem], StockMovement],
    ) -> StockMovementResult:
        """Run one read-compute-write cycle for a stock item."""
        item_store = await self._get_stock_item_store()
        movement_store = await self._get_movement_store()

        @stale_retry()
        async def attempt() -> StockMovementResult:
            item = await item_store.get(stock_item_id)
            if item is None:
                raise StockItemNotFoundError(stock_item_id)

            movement = make_movement(item)
            updated = with_status(
                item.model_copy(update={"current_quantity": movement.new_quantity})
            )
            recorded, saved = await movement_store.record(movement, updated)
            return StockMovementResult(movement=recorded, stock_item=saved)

        async with self._locks.hold(stock_item_id):
            return await attempt()

    @staticmethod
    def _user(user_id: str | None) -> str:
        return user_id or get_settings().ledger.default_user_id

    async def receive(
        self,
        stock_item_id: str,
        quantity: Decimal | int | str,
        reason: str | None = None,
        user_id: str | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> StockMovementResult:
        """Book a delivery (RECEIVED, positive delta)."""
        amount = validate_positive(quantity)
        reason = validate_reason(reason, MovementType.RECEIVED)

        result = await self._apply(
            stock_item_id,
            lambda item: build_movement(
                item,
                MovementType.RECEIVED,
                amount,
                user_id=self._user(user_id),
                reason=reason,
                reference_type=reference_type,
                reference_id=reference_id,
            ),
        )
        logger.info(
            "stock_received",
            stock_item_id=stock_item_id,
            quantity=str(amount),
            new_quantity=str(result.stock_item.current_quantity),
        )
        return result

    async def adjust(
        self,
        stock_item_id: str,
        quantity: Decimal | int | str,
        reason: str,
        user_id: str | None = None,
    ) -> StockMovementResult:
        """Book a signed correction (ADJUSTED). A reason is mandatory."""
        delta = parse_quantity(quantity, "quantity")
        if delta == 0:
            raise ValidationError("quantity", "must not be zero", quantity)
        reason = validate_reason(reason, MovementType.ADJUSTED)

        def make(item: StockItem) -> StockMovement:
            if item.current_quantity + delta < 0:
                raise ValidationError(
                    "quantity",
                    f"adjustment would make quantity negative (available {item.current_quantity})",
                    quantity,
                )
            return build_movement(
                item, MovementType.ADJUSTED, delta, user_id=self._user(user_id), reason=reason
            )

        result = await self._apply(stock_item_id, make)
        logger.info(
            "stock_adjusted",
            stock_item_id=stock_item_id,
            quantity=str(delta),
            new_quantity=str(result.stock_item.current_quantity),
        )
        return result

    async def consume(
        self,
        stock_item_id: str,
        quantity: Decimal | int | str,
        reference_type: str | None = None,
        reference_id: str | None = None,
        user_id: str | None = None,
        reason: str | None = None,
    ) -> StockMovementResult:
        """Book usage in production (USED). Refused when stock is insufficient."""
        amount = validate_positive(quantity)
        reason = validate_reason(reason, MovementType.USED)

        def make(item: StockItem) -> StockMovement:
            if amount > item.current_quantity:
                raise InsufficientStockError(item.id, amount, item.current_quantity)
            return build_movement(
                item,
                MovementType.USED,
                -amount,
                user_id=self._user(user_id),
                reason=reason,
                reference_type=reference_type,
                reference_id=reference_id,
            )

        result = await self._apply(stock_item_id, make)
        logger.info(
            "stock_consumed",
            stock_item_id=stock_item_id,
            quantity=str(amount),
            reference_type=reference_type,
            reference_id=reference_id,
            new_quantity=str(result.stock_item.current_quantity),
        )
        return result

    async def record_loss(
        self,
        stock_item_id: str,
        loss_type: MovementType,
        quantity: Decimal | int | str,
        reason: str,
        user_id: str | None = None,
    ) -> StockMovementResult:
        """Book damaged or expired stock (negative delta, reason mandatory)."""
        if loss_type not in LOSS_TYPES:
            raise ValidationError(
                "type",
                f"must be one of {', '.join(sorted(t.value for t in LOSS_TYPES))}",
                loss_type,
            )
        amount = validate_positive(quantity)
        reason = validate_reason(reason, loss_type)

        def make(item: StockItem) -> StockMovement:
            if amount > item.current_quantity:
                raise ValidationError(
                    "quantity",
                    f"loss exceeds available quantity ({item.current_quantity})",
                    quantity,
                )
            return build_movement(
                item, loss_type, -amount, user_id=self._user(user_id), reason=reason
            )

        result = await self._apply(stock_item_id, make)
        logger.info(
            "stock_loss_recorded",
            stock_item_id=stock_item_id,
            type=loss_type.value,
            quantity=str(amount),
            new_quantity=str(result.stock_item.current_quantity),
        )
        return result

    async def get_movements(self, filters: StockMovementFilter) -> Page[StockMovement]:
        validate_pagination(filters.page, filters.limit, get_settings().ledger.max_page_size)
        if filters.start_date and filters.end_date and filters.start_date > filters.end_date:
            raise ValidationError("start_date", "must not be after end_date", filters.start_date)
        store = await self._get_movement_store()
        return await store.list(filters)

    async def get_movement(self, movement_id: str) -> StockMovement:
        store = await self._get_movement_store()
        movement = await store.get(movement_id)
        if movement is None:
            raise StockMovementNotFoundError(movement_id)
        return movement

    async def reconcile(self, stock_item_id: str) -> LedgerReconciliation:
        """Compare a stock item's quantity with the sum of its movement deltas."""
        item_store = await self._get_stock_item_store()
        item = await item_store.get(stock_item_id, active_only=False)
        if item is None:
            raise StockItemNotFoundError(stock_item_id)

        movement_store = await self._get_movement_store()
        ledger_quantity = await movement_store.sum_quantity(stock_item_id)
        result = LedgerReconciliation(
            stock_item_id=stock_item_id,
            current_quantity=item.current_quantity,
            ledger_quantity=ledger_quantity,
        )
        if not result.consistent:
            logger.error(
                "stock_ledger_mismatch",
                stock_item_id=stock_item_id,
                current_quantity=str(item.current_quantity),
                ledger_quantity=str(ledger_quantity),
            )
        return result
