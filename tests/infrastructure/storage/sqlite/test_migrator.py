"""Tests for the schema migrator."""

from pathlib import Path

import aiosqlite
import pytest

from bakery_stock.infrastructure.storage.sqlite.migrations.migrator import (
    REQUIRED_TABLES,
    Migration,
    SchemaMigrator,
    current_schema_version,
    main,
)


class TestMigration:
    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v001_stock_schema.sql"
        migration_file.write_text("SELECT 1;")

        migration = Migration.from_file(migration_file)

        assert migration.version == "001"
        assert migration.name == "stock_schema"
        assert len(migration.checksum) == 16

    def test_from_file_invalid_filename_raises(self, tmp_path: Path):
        invalid_file = tmp_path / "schema.sql"
        invalid_file.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            Migration.from_file(invalid_file)

    def test_bundled_migrations_are_ordered(self, temp_db_path: Path):
        migrations = SchemaMigrator(temp_db_path).available()

        assert migrations[0].version == "001"
        assert [m.version for m in migrations] == sorted(m.version for m in migrations)


class TestMigrate:
    async def test_creates_required_tables(self, temp_db_path: Path):
        outcomes = await SchemaMigrator(temp_db_path).migrate(backup=False)

        assert outcomes
        assert all(o.success for o in outcomes)
        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in await cursor.fetchall()}
        assert set(REQUIRED_TABLES) <= tables

    async def test_second_run_applies_nothing(self, migrated_db: Path):
        assert await SchemaMigrator(migrated_db).migrate(backup=False) == []

    async def test_records_current_version(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            assert await current_schema_version(conn) == "001"

    async def test_version_of_empty_database(self, temp_db_path: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            assert await current_schema_version(conn) is None

    async def test_backup_removed_after_success(self, migrated_db: Path):
        await SchemaMigrator(migrated_db).migrate(backup=True)
        assert list(migrated_db.parent.glob("*.backup_*")) == []

    async def test_failed_migration_restores_backup(self, migrated_db: Path, tmp_path: Path):
        migrations_dir = tmp_path / "migrations"
        migrations_dir.mkdir()
        bundled = SchemaMigrator(migrated_db).available()[0]
        (migrations_dir / bundled.path.name).write_bytes(bundled.path.read_bytes())
        (migrations_dir / "v002_broken.sql").write_text(
            "CREATE TABLE extra (id TEXT);\nTHIS IS NOT SQL;"
        )

        outcomes = await SchemaMigrator(migrated_db, migrations_dir).migrate(backup=True)

        assert [o.success for o in outcomes] == [False]
        assert outcomes[0].migration.version == "002"
        async with aiosqlite.connect(migrated_db) as conn:
            assert await current_schema_version(conn) == "001"
            cursor = await conn.execute("SELECT name FROM sqlite_master WHERE name = 'extra'")
            assert await cursor.fetchone() is None
        assert list(migrated_db.parent.glob("*.backup_*")) == []


class TestMovementImmutability:
    """The movement table rejects UPDATE and DELETE."""

    @pytest.fixture
    async def movement_row(self, migrated_db: Path) -> Path:
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute(
                "INSERT INTO stock_items (id, name, unit_of_measure, current_quantity, "
                "created_at, updated_at) "
                "VALUES ('s1', 'Flour', 'kg', '5.000', '2024-01-01', '2024-01-01')"
            )
            await conn.execute(
                """
                INSERT INTO stock_movements (
                    id, stock_item_id, type, quantity, previous_quantity, new_quantity,
                    user_id, created_at
                ) VALUES ('m1', 's1', 'received', '5.000', '0.000', '5.000', 'system', '2024-01-01')
                """
            )
            await conn.commit()
        return migrated_db

    async def test_update_rejected(self, movement_row: Path):
        async with aiosqlite.connect(movement_row) as conn:
            with pytest.raises(aiosqlite.IntegrityError, match="immutable"):
                await conn.execute("UPDATE stock_movements SET quantity = '9.000'")

    async def test_delete_rejected(self, movement_row: Path):
        async with aiosqlite.connect(movement_row) as conn:
            with pytest.raises(aiosqlite.IntegrityError, match="immutable"):
                await conn.execute("DELETE FROM stock_movements")

    async def test_verify_flags_ledger_drift(self, movement_row: Path):
        async with aiosqlite.connect(movement_row) as conn:
            await conn.execute("UPDATE stock_items SET current_quantity = '7.000'")
            await conn.commit()

        checks = {c.name: c for c in await SchemaMigrator(movement_row).verify()}

        assert checks["ledger_balance"].passed is False
        assert checks["ledger_balance"].detail == {"drifted": ["s1"]}


class TestStatusAndVerify:
    async def test_status_of_missing_database(self, tmp_path: Path):
        status = await SchemaMigrator(tmp_path / "missing.db").status()

        assert status["exists"] is False
        assert status["pending"] == ["001"]

    async def test_status_after_migration(self, migrated_db: Path):
        status = await SchemaMigrator(migrated_db).status()

        assert status["exists"] is True
        assert status["current_version"] == "001"
        assert status["pending"] == []

    async def test_verify_passes_on_fresh_schema(self, migrated_db: Path):
        checks = await SchemaMigrator(migrated_db).verify()

        assert [c.name for c in checks] == [
            "integrity",
            "foreign_keys",
            "required_tables",
            "movement_immutability",
            "ledger_balance",
        ]
        assert all(c.passed for c in checks)

    async def test_verify_detects_missing_tables(self, temp_db_path: Path):
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("CREATE TABLE other (id INTEGER)")
            await conn.commit()

        checks = {c.name: c for c in await SchemaMigrator(temp_db_path).verify()}

        assert checks["required_tables"].passed is False
        assert checks["movement_immutability"].passed is False
        assert "ledger_balance" not in checks


class TestBackup:
    def test_backup_and_restore(self, tmp_path: Path):
        db_path = tmp_path / "stock.db"
        db_path.write_bytes(b"original")
        migrator = SchemaMigrator(db_path)

        backup = migrator.backup()
        db_path.write_bytes(b"changed")
        migrator.restore(backup)

        assert db_path.read_bytes() == b"original"
        assert not backup.exists()


class TestCommandLine:
    def test_migrate_then_verify(self, temp_db_path: Path, capsys):
        assert main(["--db-path", str(temp_db_path), "migrate", "--no-backup"]) == 0
        assert "v001" in capsys.readouterr().out

        assert main(["--db-path", str(temp_db_path), "verify"]) == 0
        assert "[PASS] ledger_balance" in capsys.readouterr().out

    def test_status_defaults(self, temp_db_path: Path, capsys):
        assert main(["--db-path", str(temp_db_path), "status"]) == 0
        assert "Pending: 001" in capsys.readouterr().out
