"""Unit tests for StockLedger with mocked stores."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from bakery_stock.core.entities import (
    MovementType,
    StockItemStatus,
    StockMovementFilter,
)
from bakery_stock.core.exceptions import (
    InsufficientStockError,
    StaleStockItemError,
    StockItemNotFoundError,
    ValidationError,
)
from bakery_stock.core.services.concurrency import ItemLocks
from bakery_stock.core.services.stock_ledger import StockLedger


async def _record(movement, item):
    return movement, item.model_copy(update={"version": item.version + 1})


@pytest.fixture
def item_store(flour):
    store = AsyncMock()
    store.get.return_value = flour
    return store


@pytest.fixture
def movement_store():
    store = AsyncMock()
    store.record.side_effect = _record
    return store


@pytest.fixture
def ledger(item_store, movement_store) -> StockLedger:
    return StockLedger(stock_item_store=item_store, movement_store=movement_store)


class TestReceive:
    async def test_receive_increases_quantity(self, ledger, movement_store):
        result = await ledger.receive("item-flour", "50", user_id="baker")

        assert result.stock_item.current_quantity == Decimal("150.000")
        assert result.stock_item.version == 4
        assert result.movement.type == MovementType.RECEIVED
        assert result.movement.quantity == Decimal("50.000")
        assert result.movement.previous_quantity == Decimal("100.000")
        assert result.movement.user_id == "baker"
        movement_store.record.assert_awaited_once()

    async def test_default_user(self, ledger):
        result = await ledger.receive("item-flour", 1)
        assert result.movement.user_id == "system"

    async def test_zero_rejected_before_reading(self, ledger, item_store):
        with pytest.raises(ValidationError):
            await ledger.receive("item-flour", 0)
        item_store.get.assert_not_awaited()

    async def test_unknown_item(self, ledger, item_store, movement_store):
        item_store.get.return_value = None
        with pytest.raises(StockItemNotFoundError):
            await ledger.receive("missing", 5)
        movement_store.record.assert_not_awaited()


class TestConsume:
    async def test_consume_to_zero_is_out_of_stock(self, ledger):
        result = await ledger.consume("item-flour", "100", reference_type="order", reference_id="o-1")

        assert result.stock_item.current_quantity == Decimal("0.000")
        assert result.stock_item.status == StockItemStatus.OUT_OF_STOCK
        assert result.movement.quantity == Decimal("-100.000")
        assert result.movement.reference_id == "o-1"

    async def test_insufficient_stock_writes_nothing(self, ledger, movement_store):
        with pytest.raises(InsufficientStockError) as exc_info:
            await ledger.consume("item-flour", "150")

        assert exc_info.value.details["available"] == "100.000"
        movement_store.record.assert_not_awaited()

    async def test_crossing_threshold_is_low_stock(self, ledger):
        result = await ledger.consume("item-flour", "80")
        assert result.stock_item.status == StockItemStatus.LOW_STOCK


class TestAdjust:
    async def test_reason_required(self, ledger, item_store):
        with pytest.raises(ValidationError) as exc_info:
            await ledger.adjust("item-flour", "-5", reason="  ")
        assert exc_info.value.details["field"] == "reason"
        item_store.get.assert_not_awaited()

    async def test_signed_adjustment(self, ledger):
        result = await ledger.adjust("item-flour", "-2.5", reason="Recount")
        assert result.stock_item.current_quantity == Decimal("97.500")
        assert result.movement.reason == "Recount"

    async def test_zero_adjustment_rejected(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.adjust("item-flour", "0", reason="Recount")

    async def test_negative_result_rejected(self, ledger, movement_store):
        with pytest.raises(ValidationError):
            await ledger.adjust("item-flour", "-100.5", reason="Recount")
        movement_store.record.assert_not_awaited()


class TestRecordLoss:
    async def test_expired(self, ledger):
        result = await ledger.record_loss("item-flour", MovementType.EXPIRED, "10", "Past date")
        assert result.movement.type == MovementType.EXPIRED
        assert result.movement.quantity == Decimal("-10.000")

    async def test_non_loss_type_rejected(self, ledger):
        with pytest.raises(ValidationError) as exc_info:
            await ledger.record_loss("item-flour", MovementType.USED, "10", "Past date")
        assert exc_info.value.details["field"] == "type"

    async def test_loss_exceeding_stock(self, ledger, movement_store):
        with pytest.raises(ValidationError):
            await ledger.record_loss("item-flour", MovementType.DAMAGED, "101", "Flood")
        movement_store.record.assert_not_awaited()


class TestOptimisticRetry:
    async def test_retries_stale_write(self, ledger, item_store, movement_store):
        calls = {"n": 0}

        async def record_once_stale(movement, item):
            calls["n"] += 1
            if calls["n"] == 1:
                raise StaleStockItemError(item.id, item.version)
            return await _record(movement, item)

        movement_store.record.side_effect = record_once_stale

        result = await ledger.receive("item-flour", "1")

        assert result.stock_item.current_quantity == Decimal("101.000")
        assert item_store.get.await_count == 2
        assert movement_store.record.await_count == 2

    async def test_gives_up_after_max_retries(self, ledger, item_store, movement_store):
        movement_store.record.side_effect = StaleStockItemError("item-flour", 3)

        with pytest.raises(StaleStockItemError):
            await ledger.receive("item-flour", "1")

        assert movement_store.record.await_count == 5

    async def test_writes_for_one_item_are_serialized(self, ledger, movement_store):
        active = {"now": 0, "max": 0}

        async def slow_record(movement, item):
            active["now"] += 1
            active["max"] = max(active["max"], active["now"])
            await asyncio.sleep(0.01)
            active["now"] -= 1
            return await _record(movement, item)

        movement_store.record.side_effect = slow_record

        await asyncio.gather(*(ledger.receive("item-flour", 1) for _ in range(5)))

        assert active["max"] == 1

    async def test_item_locks_released_after_unknown_items(self, ledger, item_store):
        item_store.get.return_value = None

        for i in range(50):
            with pytest.raises(StockItemNotFoundError):
                await ledger.receive(f"missing-{i}", 1)

        assert len(ledger._locks) == 0

    async def test_item_locks_released_after_concurrent_writes(self, ledger, movement_store):
        async def slow_record(movement, item):
            await asyncio.sleep(0.01)
            return await _record(movement, item)

        movement_store.record.side_effect = slow_record

        await asyncio.gather(
            *(ledger.receive("item-flour", 1) for _ in range(3)),
            *(ledger.receive("item-sugar", 1) for _ in range(3)),
        )

        assert len(ledger._locks) == 0


class TestItemLocks:
    async def test_waiters_share_one_lock(self):
        locks = ItemLocks()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def first():
            async with locks.hold("item-flour"):
                entered.set()
                await release.wait()

        async def second():
            async with locks.hold("item-flour"):
                pass

        first_task = asyncio.create_task(first())
        await entered.wait()
        second_task = asyncio.create_task(second())
        await asyncio.sleep(0)

        assert len(locks) == 1
        assert not second_task.done()

        release.set()
        await asyncio.gather(first_task, second_task)
        assert len(locks) == 0

    async def test_entry_dropped_when_body_raises(self):
        locks = ItemLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("item-flour"):
                raise RuntimeError("boom")

        assert len(locks) == 0


class TestReads:
    async def test_date_range_must_be_ordered(self, ledger):
        from datetime import UTC, datetime

        filters = StockMovementFilter(
            start_date=datetime(2024, 2, 1, tzinfo=UTC),
            end_date=datetime(2024, 1, 1, tzinfo=UTC),
        )
        with pytest.raises(ValidationError):
            await ledger.get_movements(filters)

    async def test_reconcile_detects_mismatch(self, ledger, movement_store):
        movement_store.sum_quantity.return_value = Decimal("90.000")

        result = await ledger.reconcile("item-flour")

        assert result.consistent is False
        assert result.current_quantity == Decimal("100.000")

    async def test_reconcile_consistent(self, ledger, movement_store):
        movement_store.sum_quantity.return_value = Decimal("100.000")
        assert (await ledger.reconcile("item-flour")).consistent is True
