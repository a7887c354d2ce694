"""Column conversions shared by the SQLite stores."""

from datetime import UTC, datetime
from decimal import Decimal


def to_db_time(value: datetime | None) -> str | None:
    """Serialize a timestamp as fixed-width UTC ISO text so it sorts lexically."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def from_db_time(value: str | None) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_db_decimal(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def from_db_decimal(value: str | None) -> Decimal | None:
    return None if value is None else Decimal(value)


def like_pattern(term: str) -> str:
    """Build a LIKE pattern matching `term` anywhere, with wildcards escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def is_unique_violation(error: Exception, *columns: str) -> bool:
    """True when an IntegrityError comes from a UNIQUE constraint on the given columns."""
    message = str(error)
    if "UNIQUE constraint failed" not in message:
        return False
    return all(column in message for column in columns)
