"""SQLite implementation of brand and stock item price storage."""

import aiosqlite

from bakery_stock.config import get_logger
from bakery_stock.core.entities import (
    Brand,
    BrandFilter,
    Page,
    StockItemBrand,
    new_id,
    utc_now,
)
from bakery_stock.core.exceptions import DuplicateStockItemBrandError
from bakery_stock.core.interfaces import IBrandStore
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

# A link is usable only while both the link and its brand are not deleted
_SELECT_LINK = """
    SELECT sib.*, b.name AS brand_name
    FROM stock_item_brands sib
    JOIN brands b ON b.id = sib.brand_id
    WHERE sib.deleted_at IS NULL AND b.deleted_at IS NULL
"""


class SQLiteBrandStore(IBrandStore):
    """SQLite implementation of brands and stock item brand links."""

    # Brands

    async def create_brand(self, brand: Brand) -> Brand:
        """Create a new brand."""
        now = utc_now()
        brand.id = brand.id or new_id()
        brand.created_at = now
        brand.updated_at = now
        async with get_transaction() as conn:
            await conn.execute(
                """
                INSERT INTO brands (id, name, description, is_active, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    brand.id,
                    brand.name,
                    brand.description,
                    int(brand.is_active),
                    to_db_time(now),
                    to_db_time(now),
                ),
            )
        logger.info("brand_created", brand_id=brand.id, name=brand.name)
        return brand

    async def get_brand(self, brand_id: str, active_only: bool = True) -> Brand | None:
        """Get brand by ID."""
        sql = "SELECT * FROM brands WHERE id = ?"
        if active_only:
            sql += " AND deleted_at IS NULL"
        async with get_connection() as conn:
            cursor = await conn.execute(sql, (brand_id,))
            row = await cursor.fetchone()
            return self._row_to_brand(row) if row else None

    async def list_brands(self, filters: BrandFilter) -> Page[Brand]:
        """List brands ordered by name."""
        clauses: list[str] = []
        params: list = []
        if filters.active_only:
            clauses.append("deleted_at IS NULL")
        if filters.is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(filters.is_active))
        if filters.search:
            clauses.append("(name LIKE ? ESCAPE '\\' OR description LIKE ? ESCAPE '\\')")
            pattern = like_pattern(filters.search)
            params.extend([pattern, pattern])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        async with get_connection() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) FROM brands {where}", params)
            total = (await cursor.fetchone())[0]
            cursor = await conn.execute(
                f"SELECT * FROM brands {where} ORDER BY name, rowid LIMIT ? OFFSET ?",
                [*params, filters.limit, (filters.page - 1) * filters.limit],
            )
            rows = await cursor.fetchall()

        return Page(
            items=[self._row_to_brand(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
        )

    async def update_brand(self, brand: Brand) -> Brand:
        """Update brand fields."""
        brand.updated_at = utc_now()
        async with get_transaction() as conn:
            await conn.execute(
                """
                UPDATE brands SET name = ?, description = ?, is_active = ?, updated_at = ?
                WHERE id = ? AND deleted_at IS NULL
                """,
                (
                    brand.name,
                    brand.description,
                    int(brand.is_active),
                    to_db_time(brand.updated_at),
                    brand.id,
                ),
            )
        logger.info("brand_updated", brand_id=brand.id)
        return brand

    async def soft_delete_brand(self, brand_id: str) -> bool:
        """Set deleted_at on an active brand."""
        now = to_db_time(utc_now())
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "UPDATE brands SET deleted_at = ?, updated_at = ? "
                "WHERE id = ? AND deleted_at IS NULL",
                (now, now, brand_id),
            )
            deleted = cursor.rowcount == 1
        if deleted:
            logger.info("brand_soft_deleted", brand_id=brand_id)
        return deleted

    async def restore_brand(self, brand_id: str) -> Brand | None:
        """Clear deleted_at on a soft-deleted brand."""
        async with get_transaction() as conn:
            cursor = await conn.execute(
                "UPDATE brands SET deleted_at = NULL, updated_at = ? "
                "WHERE id = ? AND deleted_at IS NOT NULL",
                (to_db_time(utc_now()), brand_id),
            )
            if cursor.rowcount != 1:
                return None
            cursor = await conn.execute("SELECT * FROM brands WHERE id = ?", (brand_id,))
            row = await cursor.fetchone()
        logger.info("brand_restored", brand_id=brand_id)
        return self._row_to_brand(row)

    # Stock item brand links

    async def add_stock_item_brand(self, link: StockItemBrand) -> StockItemBrand:
        """Insert a link, clearing the previous preferred link when needed."""
        now = utc_now()
        link.id = link.id or new_id()
        try:
            async with get_transaction() as conn:
                if link.is_preferred:
                    await self._clear_preferred(conn, link.stock_item_id, now)
                await conn.execute(
                    """
                    INSERT INTO stock_item_brands (
                        id, stock_item_id, brand_id, price_before_tax, price_after_tax,
                        is_preferred, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        link.id,
                        link.stock_item_id,
                        link.brand_id,
                        to_db_decimal(link.price_before_tax),
                        to_db_decimal(link.price_after_tax),
                        int(link.is_preferred),
                        to_db_time(now),
                        to_db_time(now),
                    ),
                )
                created = await self._fetch_link(conn, link.stock_item_id, link.brand_id)
        except aiosqlite.IntegrityError as e:
            if is_unique_violation(e, "stock_item_brands.brand_id"):
                raise DuplicateStockItemBrandError(link.stock_item_id, link.brand_id) from e
            raise

        logger.info(
            "stock_item_brand_added",
            stock_item_id=link.stock_item_id,
            brand_id=link.brand_id,
            is_preferred=link.is_preferred,
        )
        return created

    async def get_stock_item_brand(
        self, stock_item_id: str, brand_id: str
    ) -> StockItemBrand | None:
        async with get_connection() as conn:
            return await self._fetch_link(conn, stock_item_id, brand_id)

    async def list_stock_item_brands(self, stock_item_id: str) -> list[StockItemBrand]:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"{_SELECT_LINK} AND sib.stock_item_id = ? "
                "ORDER BY sib.is_preferred DESC, b.name",
                (stock_item_id,),
            )
            rows = await cursor.fetchall()
        return [self._row_to_link(row) for row in rows]

    async def get_preferred_brand(self, stock_item_id: str) -> StockItemBrand | None:
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"{_SELECT_LINK} AND sib.stock_item_id = ? AND sib.is_preferred = 1",
                (stock_item_id,),
            )
            row = await cursor.fetchone()
        return self._row_to_link(row) if row else None

    async def update_stock_item_brand(self, link: StockItemBrand) -> StockItemBrand:
        """Update prices and preferred flag of an active link."""
        now = utc_now()
        async with get_transaction() as conn:
            if link.is_preferred:
                await self._clear_preferred(conn, link.stock_item_id, now)
            await conn.execute(
                """
                UPDATE stock_item_brands SET
                    price_before_tax = ?,
                    price_after_tax = ?,
                    is_preferred = ?,
                    updated_at = ?
                WHERE stock_item_id = ? AND brand_id = ? AND deleted_at IS NULL
                """,
                (
                    to_db_decimal(link.price_before_tax),
                    to_db_decimal(link.price_after_tax),
                    int(link.is_preferred),
                    to_db_time(now),
                    link.stock_item_id,
                    link.brand_id,
                ),
            )
            updated = await self._fetch_link(conn, link.stock_item_id, link.brand_id)
        logger.info(
            "stock_item_brand_updated",
            stock_item_id=link.stock_item_id,
            brand_id=link.brand_id,
        )
        return updated

    async def set_preferred(self, stock_item_id: str, brand_id: str) -> StockItemBrand | None:
        """Clear and set the preferred flag in one transaction."""
        now = utc_now()
        async with get_transaction(immediate=True) as conn:
            if await self._fetch_link(conn, stock_item_id, brand_id) is None:
                return None
            await self._clear_preferred(conn, stock_item_id, now)
            await conn.execute(
                """
                UPDATE stock_item_brands SET is_preferred = 1, updated_at = ?
                WHERE stock_item_id = ? AND brand_id = ? AND deleted_at IS NULL
                """,
                (to_db_time(now), stock_item_id, brand_id),
            )
            link = await self._fetch_link(conn, stock_item_id, brand_id)
        logger.info("preferred_brand_set", stock_item_id=stock_item_id, brand_id=brand_id)
        return link

    async def remove_stock_item_brand(self, stock_item_id: str, brand_id: str) -> bool:
        """Soft-remove a link; a removed link is never preferred."""
        now = to_db_time(utc_now())
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE stock_item_brands SET deleted_at = ?, is_preferred = 0, updated_at = ?
                WHERE stock_item_id = ? AND brand_id = ? AND deleted_at IS NULL
                """,
                (now, now, stock_item_id, brand_id),
            )
            removed = cursor.rowcount == 1
        if removed:
            logger.info("stock_item_brand_removed", stock_item_id=stock_item_id, brand_id=brand_id)
        return removed

    @staticmethod
    async def _clear_preferred(conn: aiosqlite.Connection, stock_item_id: str, now) -> None:
        await conn.execute(
            """
            UPDATE stock_item_brands SET is_preferred = 0, updated_at = ?
            WHERE stock_item_id = ? AND is_preferred = 1 AND deleted_at IS NULL
            """,
            (to_db_time(now), stock_item_id),
        )

    async def _fetch_link(
        self, conn: aiosqlite.Connection, stock_item_id: str, brand_id: str
    ) -> StockItemBrand | None:
        cursor = await conn.execute(
            f"{_SELECT_LINK} AND sib.stock_item_id = ? AND sib.brand_id = ?",
            (stock_item_id, brand_id),
        )
        row = await cursor.fetchone()
        return self._row_to_link(row) if row else None

    @staticmethod
    def _row_to_brand(row: aiosqlite.Row) -> Brand:
        """Convert a database row to a Brand entity."""
        return Brand(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            is_active=bool(row["is_active"]),
            deleted_at=from_db_time(row["deleted_at"]),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )

    @staticmethod
    def _row_to_link(row: aiosqlite.Row) -> StockItemBrand:
        """Convert a joined database row to a StockItemBrand entity."""
        return StockItemBrand(
            id=row["id"],
            stock_item_id=row["stock_item_id"],
            brand_id=row["brand_id"],
            brand_name=row["brand_name"],
            price_before_tax=from_db_decimal(row["price_before_tax"]),
            price_after_tax=from_db_decimal(row["price_after_tax"]),
            is_preferred=bool(row["is_preferred"]),
            deleted_at=from_db_time(row["deleted_at"]),
            created_at=from_db_time(row["created_at"]),
            updated_at=from_db_time(row["updated_at"]),
        )
