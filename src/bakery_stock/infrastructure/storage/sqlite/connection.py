"""
Async SQLite access for the stock database.

SQLite admits one writer at a time. All write transactions go through a
single writer connection guarded by an asyncio lock, so concurrent stock
movements queue in the event loop instead of failing with SQLITE_BUSY.
Reads are spread over a small set of read-only connections, which in WAL
mode see the last committed state.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from bakery_stock.config import get_logger, get_settings
from bakery_stock.core.exceptions import DatabaseError

logger = get_logger(__name__)


class StockDatabase:
    """One serialized writer plus a queue of reader connections."""

    def __init__(self, db_path: Path, readers: int = 4, busy_timeout: int = 30000):
        if readers < 1:
            raise ValueError("at least one reader connection is required")
        self.db_path = db_path
        self.readers = readers
        self.busy_timeout = busy_timeout

        self._writer: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._reader_queue: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._reader_conns: list[aiosqlite.Connection] = []
        self._open_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    async def _connect(self, read_only: bool) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        await conn.execute("PRAGMA foreign_keys=ON")
        if read_only:
            await conn.execute("PRAGMA query_only=ON")
        else:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA synchronous=NORMAL")
        conn.row_factory = aiosqlite.Row
        return conn

    async def open(self) -> None:
        async with self._open_lock:
            if self.is_open:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            # The writer switches the file to WAL before any reader attaches
            self._writer = await self._connect(read_only=False)
            for _ in range(self.readers):
                conn = await self._connect(read_only=True)
                self._reader_conns.append(conn)
                self._reader_queue.put_nowait(conn)

            logger.info("stock_database_opened", db_path=str(self.db_path), readers=self.readers)

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a read-only connection."""
        if not self.is_open:
            await self.open()
        conn = await self._reader_queue.get()
        try:
            yield conn
        except aiosqlite.OperationalError as e:
            logger.error("database_read_failed", error=str(e))
            raise DatabaseError("read", str(e)) from e
        finally:
            # A reader must not carry a snapshot into its next borrow
            if conn.in_transaction:
                await conn.rollback()
            self._reader_queue.put_nowait(conn)

    @asynccontextmanager
    async def write(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run a write transaction on the writer connection.

        Commits on success and rolls back on any exception, including
        cancellation. SQLite operational failures such as a locked or
        read-only database surface as DatabaseError. Write blocks must not
        nest: the writer lock is not reentrant. With ``immediate`` the SQLite
        write lock is taken up front (BEGIN IMMEDIATE), which also excludes
        writers in other processes.
        """
        if not self.is_open:
            await self.open()
        async with self._write_lock:
            conn = self._writer
            try:
                if immediate:
                    await conn.execute("BEGIN IMMEDIATE")
                yield conn
                await conn.commit()
            except aiosqlite.OperationalError as e:
                await conn.rollback()
                logger.error("database_write_failed", error=str(e))
                raise DatabaseError("write", str(e)) from e
            except BaseException:
                await conn.rollback()
                raise

    async def ping(self) -> bool:
        try:
            async with self.read() as conn:
                cursor = await conn.execute("SELECT 1")
                row = await cursor.fetchone()
        except (aiosqlite.Error, DatabaseError) as e:
            logger.warning("database_ping_failed", error=str(e))
            return False
        return row is not None and row[0] == 1

    async def close(self) -> None:
        async with self._open_lock:
            for conn in self._reader_conns:
                await conn.close()
            self._reader_conns.clear()
            self._reader_queue = asyncio.Queue()
            if self._writer is not None:
                await self._writer.close()
                self._writer = None
            logger.info("stock_database_closed", db_path=str(self.db_path))


_database: StockDatabase | None = None


async def get_database() -> StockDatabase:
    """Get or open the process-wide database handle."""
    global _database
    if _database is None:
        storage = get_settings().storage
        _database = StockDatabase(
            db_path=storage.db_path,
            readers=storage.readers,
            busy_timeout=storage.busy_timeout,
        )
        await _database.open()
    return _database


async def close_database() -> None:
    global _database
    if _database is not None:
        await _database.close()
        _database = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Read-only connection from the global database."""
    database = await get_database()
    async with database.read() as conn:
        yield conn


@asynccontextmanager
async def get_transaction(immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
    """Write transaction on the global database."""
    database = await get_database()
    async with database.write(immediate=immediate) as conn:
        yield conn
