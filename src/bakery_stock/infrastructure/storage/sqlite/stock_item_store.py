"""SQLite implementation of stock item storage."""

import aiosqlite

from bakery_stock.config import get_logger
from bakery_stock.core.entities import (
    Page,
    StockItem,
    StockItemFilter,
    StockItemStatus,
    StockMovement,
    new_id,
    utc_now,
)
from bakery_stock.core.exceptions import (
    DuplicateStockItemError,
    StaleStockItemError,
    StockItemInUseError,
)
from bakery_stock.core.interfaces import IStockItemStore
from bakery_stock.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from bakery_stock.infrastructure.storage.sqlite.rows import (
    from_db_decimal,
    from_db_time,
    is_unique_violation,
    like_pattern,
    to_db_decimal,
    to_db_time,
)
from bakery_stock.infrastructure.storage.sqlite.stock_movement_store import insert_movement

logger = get_logger(__name__)

_SORT_COLUMNS = {
    "name": "name",
    "current_quantity": "CAST(current_quantity AS REAL)",
    "status": "status",
    "created_at": "created_at",
    "updated_at": "updated_at",
}


class SQLiteStockItemStore(IStockItemStore):
    """SQLite implementation of stock item storage."""

    async def create(
        self, item: StockItem, opening_movement: StockMovement | None = None
    ) -> StockItem:
        """Create a new stock item, optionally with its opening movement."""
        now = utc_now()
        item.id = item.id or new_id()
        item.created_at = now
        item.updated_at = now
        try:
            async with get_transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO stock_items (
                        id, name, description, unit_of_measure, current_quantity,
                        reorder_threshold, status, version, deleted_at,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, NULL, ?, ?)
                    """,
                    (
                        item.id,
                        item.name,
                        item.description,
                        item.unit_of_measure,
                        to_db_decimal(item.current_quantity),
                        to_db_decimal(item.reorder_threshold),
                        item.status.value,
                        item.version,
                        to_db_time(item.created_at),
                        to_db_time(item.updated_at),
                    ),
                )
                if opening_movement is not None:
                    await insert_movement(
                        conn,
                        opening_movement.model_copy(
                            update={"stock_item_id": item.id, "stock_item_name": item.name}
                        ),
                    )
        except aiosqlite.IntegrityError as e:
            if is_unique_violation(e, "stock_items.name"):
                raise DuplicateStockItemError(item.name) from e
            raise

        logger.info(
            "stock_item_created",
            stock_item_id=item.id,
            name=item.name,
            quantity=str(item.current_quantity),
        )
        return item

    async def get(self, item_id: str, active_only: bool = True) -> StockItem | None:
        """Get stock item by ID."""
        async with get_connection() as conn:
            return await self._fetch(conn, "id", item_id, active_only)

    async def get_by_name(self, name: str, active_only: bool = False) -> StockItem | None:
        """Get stock item by exact name."""
        async with get_connection() as conn:
            return await self._fetch(conn, "name", name, active_only)

    async def list(self, filters: StockItemFilter) -> Page[StockItem]:
        """List stock items with filtering, sorting and pagination."""
        clauses: list[str] = []
        params: list = []
        if filters.active_only:
            clauses.append("deleted_at IS NULL")
        if filters.status:
            clauses.append("status = ?")
            params.append(filters.status.value)
        if filters.low_stock_only:
            clauses.append("status IN (?, ?)")
            params.extend([StockItemStatus.LOW_STOCK.value, StockItemStatus.OUT_OF_STOCK.value])
        if filters.search:
            clauses.append("(name LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')")
            pattern = like_pattern(filters.search)
            params.extend([pattern, pattern])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        order_column = _SORT_COLUMNS[filters.sort_by]
        direction = "ASC" if filters.sort_order == "asc" else "DESC"

        async with get_connection() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM stock_items {where}", params)
            total = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                f"""
                SELECT * FROM stock_items
                {where}
                ORDER BY {order_column} {direction}, rowid {direction}
                LIMIT ? OFFSET ?
                """,
                [*params, filters.limit, (filters.page - 1) * filters.limit],
            )
            rows = await cursor.fetchall()

        return Page(
            items=[self._row_to_stock_item(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
        )

    async def update(self, item: StockItem) -> StockItem:
        """Update descriptive fields, threshold and status under a version check."""
        now = utc_now()
        try:
            async with get_transaction() as conn:
                cursor = await conn.execute(
                    """
                    UPDATE stock_items SET
                        name = ?,
                        description = ?,
                        unit_of_measure = ?,
                        reorder_threshold = ?,
                        status = ?,
                        version = version + 1,
                        updated_at = ?
                    WHERE id = ? AND version = ? AND deleted_at IS NULL
                    """,
                    (
                        item.name,
                        item.description,
                        item.unit_of_measure,
                        to_db_decimal(item.reorder_threshold),
                        item.status.value,
                        to_db_time(now),
                        item.id,
                        item.version,
                    ),
                )
                if cursor.rowcount != 1:
                    raise StaleStockItemError(item.id, item.version)
        except aiosqlite.IntegrityError as e:
            if is_unique_violation(e, "stock_items.name"):
                raise DuplicateStockItemError(item.name) from e
            raise

        logger.info("stock_item_updated", stock_item_id=item.id)
        return item.model_copy(update={"version": item.version + 1, "updated_at": now})

    async def soft_delete(self, item_id: str) -> bool:
        """
        Set deleted_at on an active stock item no active recipe line uses.

        The usage count and the update share one immediate transaction, so a
        recipe line added concurrently either lands first and blocks the
        delete or finds the item gone.
        """
        now = to_db_time(utc_now())
        async with get_transaction(immediate=True) as conn:
            cursor = await conn.execute(
                """
                SELECT COUNT(DISTINCT product_id) FROM product_stock_items
                WHERE stock_item_id = ? AND deleted_at IS NULL
                """,
                (item_id,),
            )
            product_count = (await cursor.fetchone())[0]
            if product_count:
                raise StockItemInUseError(item_id, product_count)

            cursor = await conn.execute(
                """
                UPDATE stock_items SET deleted_at = ?, updated_at = ?, version = version + 1
                WHERE id = ? AND deleted_at IS NULL
                  AND NOT EXISTS (
                      SELECT 1 FROM product_stock_items
                      WHERE stock_item_id = stock_items.id AND deleted_at IS NULL
                  )
                """,
                (now, now, item_id),
            )
            deleted = cursor.rowcount == 1
        if deleted:
            logger.info("stock_item_soft_deleted", stock_item_id=item_id)
        return deleted

    async def restore(self, item_id: str) -> StockItem | None:
        """Clear deleted_at on a soft-deleted stock item."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE stock_items SET deleted_at = NULL, updated_at = ?, version = version + 1
                WHERE id = ? AND deleted_at IS NOT NULL
                """,
                (to_db_time(utc_now()), item_id),
            )
            if cursor.rowcount != 1:
                return None
            item = await self._fetch(conn, "id", item_id, active_only=True)
        logger.info("stock_item_restored", stock_item_id=item_id)
        return item

    async def _fetch(
        self, conn: aiosqlite.Connection, column: str, value: str, active_only: bool
    ) -> StockItem | None:
        sql = f"SELECT * FROM stock_items WHERE {column} = ?"
        if active_only:
            sql += " AND deleted_at IS NULL"
        cursor = await conn.execute(sql, (value,))
        row = await cursor.fetchone()
        return self._row_to_stock_item(row) if row else None

    @staticmethod
    def _row_to_stock_item(row: aiosqlite.Row) -> StockItem:
        """Convert a database row to a StockItem entity."""
        return StockItem(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            unit_of_measure=row["unit_of_measure"],
            current_quantity=from_db_decimal(row["current_quantity"]),
            reorder_threshold=from_db_decimal(row["reorder_threshold"]),
            status=StockItemStatus(row["status"]),
            version=row["version"],
            deleted_at=from_db_time(row["deleted_at"]),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )
