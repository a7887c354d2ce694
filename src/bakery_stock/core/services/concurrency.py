"""Per-item write serialization and optimistic-concurrency retries."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bakery_stock.config import get_logger, get_settings
from bakery_stock.core.exceptions import StaleStockItemError

logger = get_logger(__name__)


class ItemLocks:
    """
    One asyncio.Lock per stock item id with holders or waiters.

    An entry is dropped as soon as its last user leaves, so ids that only
    ever fail lookups do not accumulate.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, stock_item_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(stock_item_id, asyncio.Lock())
        self._users[stock_item_id] = self._users.get(stock_item_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[stock_item_id] -= 1
            if not self._users[stock_item_id]:
                del self._users[stock_item_id]
                del self._locks[stock_item_id]


def _log_retry(retry_state: RetryCallState) -> None:
    logger.warning(
        "stale_stock_item_retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()) if retry_state.outcome else None,
    )


def stale_retry() -> Any:
    """
    Tenacity decorator retrying a read-compute-write on StaleStockItemError.

    The last StaleStockItemError is re-raised once attempts are exhausted.
    """
    settings = get_settings()
    return retry(
        stop=stop_after_attempt(settings.ledger.max_retries),
        wait=wait_exponential(
            multiplier=settings.ledger.retry_delay,
            min=settings.ledger.retry_delay,
            max=settings.ledger.retry_delay * 8,
        ),
        retry=retry_if_exception_type(StaleStockItemError),
        before_sleep=_log_retry,
        reraise=True,
    )
