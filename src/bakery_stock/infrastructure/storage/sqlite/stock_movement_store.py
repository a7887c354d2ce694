"""SQLite implementation of the append-only stock movement ledger."""

from decimal import Decimal

import aiosqlite

from bakery_stock.config import get_logger
from bakery_stock.core.entities import (
    MovementType,
    Page,
    StockItem,
    StockMovement,
    StockMovementFilter,
    new_id,
    utc_now,
)
from bakery_stock.core.exceptions import StaleStockItemError
from bakery_stock.core.interfaces import IStockMovementStore
from bakery_stock.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from bakery_stock.infrastructure.storage.sqlite.rows import (
    from_db_decimal,
    from_db_time,
    to_db_decimal,
    to_db_time,
)

logger = get_logger(__name__)

_SELECT_MOVEMENT = """
    SELECT m.*, s.name AS stock_item_name
    FROM stock_movements m
    JOIN stock_items s ON s.id = m.stock_item_id
"""


async def insert_movement(conn: aiosqlite.Connection, movement: StockMovement) -> StockMovement:
    """Insert a movement row on an open transaction."""
    if movement.id is None:
        movement = movement.model_copy(update={"id": new_id()})
    await conn.execute(
        """
        INSERT INTO stock_movements (
            id, stock_item_id, type, quantity, previous_quantity, new_quantity,
            reason, reference_type, reference_id, user_id, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            movement.id,
            movement.stock_item_id,
            movement.type.value,
            to_db_decimal(movement.quantity),
            to_db_decimal(movement.previous_quantity),
            to_db_decimal(movement.new_quantity),
            movement.reason,
            movement.reference_type,
            movement.reference_id,
            movement.user_id,
            to_db_time(movement.created_at),
        ),
    )
    return movement


class SQLiteStockMovementStore(IStockMovementStore):
    """SQLite implementation of stock movement storage."""

    async def record(
        self, movement: StockMovement, item: StockItem
    ) -> tuple[StockMovement, StockItem]:
        """Append a movement and apply it to the stock item row atomically."""
        now = utc_now()
        async with get_transaction() as conn:
            movement = await insert_movement(conn, movement)
            cursor = await conn.execute(
                """
                UPDATE stock_items SET
                    current_quantity = ?,
                    status = ?,
                    version = version + 1,
                    updated_at = ?
                WHERE id = ? AND version = ? AND deleted_at IS NULL
                """,
                (
                    to_db_decimal(item.current_quantity),
                    item.status.value,
                    to_db_time(now),
                    item.id,
                    item.version,
                ),
            )
            if cursor.rowcount != 1:
                raise StaleStockItemError(item.id, item.version)

        movement = movement.model_copy(update={"stock_item_name": item.name})
        updated = item.model_copy(update={"version": item.version + 1, "updated_at": now})
        logger.info(
            "stock_movement_recorded",
            movement_id=movement.id,
            stock_item_id=item.id,
            type=movement.type.value,
            quantity=str(movement.quantity),
            new_quantity=str(movement.new_quantity),
        )
        return movement, updated

    async def get(self, movement_id: str) -> StockMovement | None:
        """Get movement by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute(f"{_SELECT_MOVEMENT} WHERE m.id = ?", (movement_id,))
            row = await cursor.fetchone()
            return self._row_to_movement(row) if row else None

    async def list(self, filters: StockMovementFilter) -> Page[StockMovement]:
        """List movements, newest first with insertion order as tie-break."""
        clauses: list[str] = []
        params: list = []
        if filters.stock_item_id:
            clauses.append("m.stock_item_id = ?")
            params.append(filters.stock_item_id)
        if filters.type:
            clauses.append("m.type = ?")
            params.append(filters.type.value)
        if filters.user_id:
            clauses.append("m.user_id = ?")
            params.append(filters.user_id)
        if filters.start_date:
            clauses.append("m.created_at >= ?")
            params.append(to_db_time(filters.start_date))
        if filters.end_date:
            clauses.append("m.created_at <= ?")
            params.append(to_db_time(filters.end_date))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) FROM stock_movements m {where}", params
            )
            total = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                f"""
                {_SELECT_MOVEMENT}
                {where}
                ORDER BY m.created_at DESC, m.rowid DESC
                LIMIT ? OFFSET ?
                """,
                [*params, filters.limit, (filters.page - 1) * filters.limit],
            )
            rows = await cursor.fetchall()

        return Page(
            items=[self._row_to_movement(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
        )

    async def sum_quantity(self, stock_item_id: str) -> Decimal:
        """Sum of recorded deltas, computed in Decimal."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT quantity FROM stock_movements WHERE stock_item_id = ?",
                (stock_item_id,),
            )
            rows = await cursor.fetchall()
        return sum((Decimal(row["quantity"]) for row in rows), Decimal("0.000"))

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        return StockMovement(
            id=row["id"],
            stock_item_id=row["stock_item_id"],
            stock_item_name=row["stock_item_name"],
            type=MovementType(row["type"]),
            quantity=from_db_decimal(row["quantity"]),
            previous_quantity=from_db_decimal(row["previous_quantity"]),
            new_quantity=from_db_decimal(row["new_quantity"]),
            reason=row["reason"],
            reference_type=row["reference_type"],
            reference_id=row["reference_id"],
            user_id=row["user_id"],
            created_at=from_db_time(row["created_at"]),
        )
