"""Database migrations module."""

from bakery_stock.infrastructure.storage.sqlite.migrations.migrator import (
    Migration,
    MigrationOutcome,
    SchemaCheck,
    SchemaMigrator,
    current_schema_version,
)

__all__ = [
    "Migration",
    "MigrationOutcome",
    "SchemaCheck",
    "SchemaMigrator",
    "current_schema_version",
]
