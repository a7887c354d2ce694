"""
Versioned schema migrations for the stock database.

Migration files are named ``vNNN_description.sql`` and applied in order.
Applied versions and checksums are tracked in ``schema_migrations``. A file
copy of the database is taken before migrating an existing database and put
back if any migration fails.

Besides SQLite's own checks, ``verify()`` confirms that movements are still
append-only and that every stock item's quantity matches its movement ledger.
"""

import argparse
import asyncio
import hashlib
import re
import shutil
import sys
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import aiosqlite

from bakery_stock.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
FILENAME_PATTERN = re.compile(r"v(\d{3})_(\w+)\.sql")

REQUIRED_TABLES = (
    "schema_migrations",
    "stock_items",
    "brands",
    "stock_item_brands",
    "stock_movements",
    "products",
    "product_stock_items",
)
MOVEMENT_TRIGGERS = ("trg_stock_movements_no_update", "trg_stock_movements_no_delete")


@dataclass(frozen=True)
class Migration:
    """One schema migration file."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        match = FILENAME_PATTERN.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        checksum = hashlib.sha256(path.read_bytes()).hexdigest()[:16]
        return cls(version=match.group(1), name=match.group(2), path=path, checksum=checksum)


@dataclass
class MigrationOutcome:
    """What happened when a migration was applied."""

    migration: Migration
    duration_ms: int
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class SchemaCheck:
    """Result of one verification check."""

    name: str
    passed: bool
    detail: dict = field(default_factory=dict)


async def current_schema_version(conn: aiosqlite.Connection) -> str | None:
    """Highest applied migration version, or None on an empty database."""
    try:
        cursor = await conn.execute("SELECT MAX(version) FROM schema_migrations")
        row = await cursor.fetchone()
    except aiosqlite.OperationalError:
        return None
    return row[0] if row else None


class SchemaMigrator:
    """Applies and verifies the stock schema for one database file."""

    def __init__(self, db_path: Path | None = None, migrations_dir: Path = MIGRATIONS_DIR):
        self.db_path = db_path if db_path is not None else get_settings().storage.db_path
        self.migrations_dir = migrations_dir

    def available(self) -> list[Migration]:
        migrations = []
        for path in sorted(self.migrations_dir.glob("v*.sql")):
            try:
                migrations.append(Migration.from_file(path))
            except ValueError as e:
                logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
        return migrations

    @staticmethod
    async def _applied(conn: aiosqlite.Connection) -> dict[str, str]:
        try:
            cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
        except aiosqlite.OperationalError:
            return {}
        return {row[0]: row[1] for row in await cursor.fetchall()}

    async def pending(self, conn: aiosqlite.Connection) -> list[Migration]:
        applied = await self._applied(conn)
        pending = []
        for migration in self.available():
            if migration.version not in applied:
                pending.append(migration)
            elif applied[migration.version] != migration.checksum:
                logger.warning(
                    "migration_checksum_changed",
                    version=migration.version,
                    recorded=applied[migration.version],
                    current=migration.checksum,
                )
        return pending

    async def _apply(self, conn: aiosqlite.Connection, migration: Migration) -> MigrationOutcome:
        logger.info("applying_migration", version=migration.version, name=migration.name)
        start = time.monotonic()
        try:
            await conn.executescript(migration.path.read_text(encoding="utf-8"))
            duration_ms = int((time.monotonic() - start) * 1000)
            await conn.execute(
                "INSERT INTO schema_migrations (version, name, checksum, execution_time_ms) "
                "VALUES (?, ?, ?, ?)",
                (migration.version, migration.name, migration.checksum, duration_ms),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            logger.error("migration_failed", version=migration.version, error=str(e))
            return MigrationOutcome(
                migration, int((time.monotonic() - start) * 1000), error=str(e)
            )

        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        if violations:
            error = f"{len(violations)} foreign key violation(s) after migration"
            logger.error(
                "migration_left_fk_violations", version=migration.version, count=len(violations)
            )
            return MigrationOutcome(migration, duration_ms, error=error)

        logger.info("migration_applied", version=migration.version, duration_ms=duration_ms)
        return MigrationOutcome(migration, duration_ms)

    async def migrate(self, backup: bool = True) -> list[MigrationOutcome]:
        """Apply pending migrations in order, stopping at the first failure."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        backup_path = self.backup() if backup and self.db_path.exists() else None
        outcomes: list[MigrationOutcome] = []

        try:
            async with aiosqlite.connect(self.db_path) as conn:
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA foreign_keys=ON")
                for migration in await self.pending(conn):
                    outcome = await self._apply(conn, migration)
                    outcomes.append(outcome)
                    if not outcome.success:
                        break
        except Exception:
            logger.exception("schema_migration_crashed", db_path=str(self.db_path))
            if backup_path:
                self.restore(backup_path)
            raise

        if backup_path:
            if all(o.success for o in outcomes):
                backup_path.unlink()
            else:
                self.restore(backup_path)

        logger.info(
            "schema_migrated",
            db_path=str(self.db_path),
            applied=[o.migration.version for o in outcomes if o.success],
        )
        return outcomes

    async def status(self) -> dict:
        if not self.db_path.exists():
            return {
                "exists": False,
                "current_version": None,
                "applied": [],
                "pending": [m.version for m in self.available()],
            }
        async with aiosqlite.connect(self.db_path) as conn:
            applied = await self._applied(conn)
            return {
                "exists": True,
                "current_version": await current_schema_version(conn),
                "applied": sorted(applied),
                "pending": [m.version for m in await self.pending(conn)],
            }

    async def verify(self) -> list[SchemaCheck]:
        """Run structural and ledger checks against the database."""
        async with aiosqlite.connect(self.db_path) as conn:
            cursor = await conn.execute("PRAGMA integrity_check")
            integrity = (await cursor.fetchone())[0]
            checks = [SchemaCheck("integrity", integrity == "ok", {"result": integrity})]

            cursor = await conn.execute("PRAGMA foreign_key_check")
            violations = len(await cursor.fetchall())
            checks.append(SchemaCheck("foreign_keys", violations == 0, {"violations": violations}))

            cursor = await conn.execute("SELECT type, name FROM sqlite_master")
            objects = await cursor.fetchall()
            tables = {name for kind, name in objects if kind == "table"}
            triggers = {name for kind, name in objects if kind == "trigger"}

            missing = [t for t in REQUIRED_TABLES if t not in tables]
            checks.append(SchemaCheck("required_tables", not missing, {"missing": missing}))

            missing = [t for t in MOVEMENT_TRIGGERS if t not in triggers]
            checks.append(SchemaCheck("movement_immutability", not missing, {"missing": missing}))

            if {"stock_items", "stock_movements"} <= tables:
                drifted = await self._ledger_drift(conn)
                checks.append(SchemaCheck("ledger_balance", not drifted, {"drifted": drifted}))

        return checks

    @staticmethod
    async def _ledger_drift(conn: aiosqlite.Connection) -> list[str]:
        """Stock item ids whose quantity differs from the sum of their movements."""
        totals: dict[str, Decimal] = defaultdict(Decimal)
        async with conn.execute("SELECT stock_item_id, quantity FROM stock_movements") as cursor:
            async for item_id, quantity in cursor:
                totals[item_id] += Decimal(quantity)

        drifted = []
        async with conn.execute("SELECT id, current_quantity FROM stock_items") as cursor:
            async for item_id, quantity in cursor:
                if Decimal(quantity) != totals[item_id]:
                    drifted.append(item_id)
        return drifted

    def backup(self) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        backup_path = self.db_path.with_suffix(f".backup_{stamp}.db")
        shutil.copy2(self.db_path, backup_path)
        logger.info("database_backup_created", backup_path=str(backup_path))
        return backup_path

    def restore(self, backup_path: Path) -> None:
        shutil.copy2(backup_path, self.db_path)
        backup_path.unlink()
        logger.warning("database_restored_from_backup", backup_path=str(backup_path))


def main(argv: list[str] | None = None) -> int:
    """``bakery-stock-migrate`` entry point."""
    parser = argparse.ArgumentParser(description="Bakery stock database migrations")
    parser.add_argument("--db-path", type=Path, help="Database path (default from settings)")
    sub = parser.add_subparsers(dest="command")
    migrate_cmd = sub.add_parser("migrate", help="Apply pending migrations (default)")
    migrate_cmd.add_argument("--no-backup", action="store_true")
    sub.add_parser("status", help="Show applied and pending migrations")
    sub.add_parser("verify", help="Check schema and ledger integrity")
    args = parser.parse_args(argv)

    migrator = SchemaMigrator(args.db_path)
    command = args.command or "migrate"

    if command == "status":
        status = asyncio.run(migrator.status())
        print(f"Database: {migrator.db_path} ({'exists' if status['exists'] else 'missing'})")
        print(f"Current version: {status['current_version'] or '-'}")
        print(f"Pending: {', '.join(status['pending']) or 'none'}")
        return 0

    if command == "verify":
        checks = asyncio.run(migrator.verify())
        for check in checks:
            print(f"[{'PASS' if check.passed else 'FAIL'}] {check.name} {check.detail or ''}")
        return 0 if all(c.passed for c in checks) else 1

    outcomes = asyncio.run(migrator.migrate(backup=not getattr(args, "no_backup", False)))
    for outcome in outcomes:
        label = "OK" if outcome.success else "FAILED"
        print(f"[{label}] v{outcome.migration.version} {outcome.migration.name} ({outcome.duration_ms}ms)")
        if outcome.error:
            print(f"    {outcome.error}")
    if not outcomes:
        print("Schema is up to date")
    return 0 if all(o.success for o in outcomes) else 1


if __name__ == "__main__":
    sys.exit(main())
