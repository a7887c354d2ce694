"""SQLite implementation of product and recipe storage."""

import aiosqlite

from bakery_stock.config import get_logger
from bakery_stock.core.entities import (
    Page,
    Product,
    ProductFilter,
    ProductStockItem,
    new_id,
    utc_now,
)
from bakery_stock.core.exceptions import DuplicateIngredientError, StockItemNotFoundError
from bakery_stock.core.interfaces import IProductStore, IRecipeStore
from bakery_stock.infrastructure.storage.sqlite.connection import get_connection, get_transaction
from bakery_stock.infrastructure.storage.sqlite.rows import (
    from_db_decimal,
    from_db_time,
    is_unique_violation,
    like_pattern,
    to_db_decimal,
    to_db_time,
)

logger = get_logger(__name__)

_SELECT_LINE = """
    SELECT psi.*,
           s.name AS stock_item_name,
           s.unit_of_measure AS unit_of_measure,
           b.name AS preferred_brand_name
    FROM product_stock_items psi
    JOIN stock_items s ON s.id = psi.stock_item_id
    LEFT JOIN brands b ON b.id = psi.preferred_brand_id
    WHERE psi.deleted_at IS NULL
"""


class SQLiteProductStore(IProductStore):
    """SQLite implementation of product storage."""

    async def create(self, product: Product) -> Product:
        """Create a new product."""
        now = utc_now()
        product.id = product.id or new_id()
        product.created_at = now
        product.updated_at = now
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO products (id, name, description, price, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    product.id,
                    product.name,
                    product.description,
                    to_db_decimal(product.price),
                    to_db_time(now),
                    to_db_time(now),
                ),
            )
        logger.info("product_created", product_id=product.id, name=product.name)
        return product

    async def get(self, product_id: str, active_only: bool = True) -> Product | None:
        """Get product by ID."""
        sql = "SELECT * FROM products WHERE id = ?"
        if active_only:
            sql += " AND deleted_at IS NULL"
        async with get_connection() as conn:
            cursor = await conn.execute(sql, (product_id,))
            row = await cursor.fetchone()
        return self._row_to_product(row) if row else None

    async def list(self, filters: ProductFilter) -> Page[Product]:
        """List products ordered by name."""
        clauses: list[str] = []
        params: list = []
        if filters.active_only:
            clauses.append("deleted_at IS NULL")
        if filters.search:
            clauses.append("name LIKE ? ESCAPE '\\'")
            params.append(like_pattern(filters.search))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM products {where}", params)
            total = (await cursor.fetchone())[0]
            cursor = await conn.execute(
                f"SELECT * FROM products {where} ORDER BY name, rowid LIMIT ? OFFSET ?",
                [*params, filters.limit, (filters.page - 1) * filters.limit],
            )
            rows = await cursor.fetchall()

        return Page(
            items=[self._row_to_product(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
        )

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        return Product(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            price=from_db_decimal(row["price"]),
            deleted_at=from_db_time(row["deleted_at"]),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )


class SQLiteRecipeStore(IRecipeStore):
    """SQLite implementation of product recipe lines."""

    async def add(self, line: ProductStockItem) -> ProductStockItem:
        """
        Insert a recipe line for a stock item that is still active.

        The liveness check is part of the insert and runs under an immediate
        transaction, so it cannot interleave with a stock item deletion.
        """
        now = utc_now()
        line.id = line.id or new_id()
        try:
            async with get_transaction(immediate=True) as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO product_stock_items (
                        id, product_id, stock_item_id, quantity, preferred_brand_id,
                        notes, created_at, updated_at
                    )
                    SELECT ?, ?, ?, ?, ?, ?, ?, ?
                    WHERE EXISTS (
                        SELECT 1 FROM stock_items WHERE id = ? AND deleted_at IS NULL
                    )
                    """,
                    (
                        line.id,
                        line.product_id,
                        line.stock_item_id,
                        to_db_decimal(line.quantity),
                        line.preferred_brand_id,
                        line.notes,
                        to_db_time(now),
                        to_db_time(now),
                        line.stock_item_id,
                    ),
                )
                if cursor.rowcount != 1:
                    raise StockItemNotFoundError(line.stock_item_id)
                created = await self._fetch(conn, line.product_id, line.stock_item_id)
        except aiosqlite.IntegrityError as e:
            if is_unique_violation(e, "product_stock_items.stock_item_id"):
                raise DuplicateIngredientError(line.product_id, line.stock_item_id) from e
            raise

        logger.info(
            "ingredient_added",
            product_id=line.product_id,
            stock_item_id=line.stock_item_id,
            quantity=str(line.quantity),
        )
        return created

    async def get(self, product_id: str, stock_item_id: str) -> ProductStockItem | None:
        async with get_connection() as conn:
            return await self._fetch(conn, product_id, stock_item_id)

    async def list_for_product(self, product_id: str) -> list[ProductStockItem]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"{_SELECT_LINE} AND psi.product_id = ? ORDER BY psi.created_at, psi.rowid",
                (product_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_line(row) for row in rows]

    async def update(self, line: ProductStockItem) -> ProductStockItem:
        """Update quantity, preferred brand and notes of an active line."""
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE product_stock_items SET
                    quantity = ?, preferred_brand_id = ?, notes = ?, updated_at = ?
                WHERE product_id = ? AND stock_item_id = ? AND deleted_at IS NULL
                """,
                (
                    to_db_decimal(line.quantity),
                    line.preferred_brand_id,
                    line.notes,
                    to_db_time(utc_now()),
                    line.product_id,
                    line.stock_item_id,
                ),
            )
            updated = await self._fetch(conn, line.product_id, line.stock_item_id)
        logger.info(
            "ingredient_updated",
            product_id=line.product_id,
            stock_item_id=line.stock_item_id,
        )
        return updated

    async def remove(self, product_id: str, stock_item_id: str) -> bool:
        now = to_db_time(utc_now())
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE product_stock_items SET deleted_at = ?, updated_at = ?
                WHERE product_id = ? AND stock_item_id = ? AND deleted_at IS NULL
                """,
                (now, now, product_id, stock_item_id),
            )
            removed = cursor.rowcount == 1
        if removed:
            logger.info("ingredient_removed", product_id=product_id, stock_item_id=stock_item_id)
        return removed

    async def count_products_using(self, stock_item_id: str) -> int:
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT COUNT(DISTINCT product_id) FROM product_stock_items
                WHERE stock_item_id = ? AND deleted_at IS NULL
                """,
                (stock_item_id,),
            )
            row = await cursor.fetchone()
        return row[0]

    async def _fetch(
        self, conn: aiosqlite.Connection, product_id: str, stock_item_id: str
    ) -> ProductStockItem | None:
        cursor = await conn.execute(
            f"{_SELECT_LINE} AND psi.product_id = ? AND psi.stock_item_id = ?",
            (product_id, stock_item_id),
        )
        row = await cursor.fetchone()
        return self._row_to_line(row) if row else None

    @staticmethod
    def _row_to_line(row: aiosqlite.Row) -> ProductStockItem:
        return ProductStockItem(
            id=row["id"],
            product_id=row["product_id"],
            stock_item_id=row["stock_item_id"],
            quantity=from_db_decimal(row["quantity"]),
            preferred_brand_id=row["preferred_brand_id"],
            notes=row["notes"],
            stock_item_name=row["stock_item_name"],
            unit_of_measure=row["unit_of_measure"],
            preferred_brand_name=row["preferred_brand_name"],
            deleted_at=from_db_time(row["deleted_at"]),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )
