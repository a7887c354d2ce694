"""
Health check endpoints.
"""

import time

import aiosqlite
from fastapi import APIRouter

from bakery_stock.api.dependencies import get_app_settings
from bakery_stock.application.dto.responses import DatabaseHealthResponse, HealthResponse
from bakery_stock.config import get_logger
from bakery_stock.core.exceptions import DatabaseError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Service health check.

    Tests SQLite connectivity and reports the applied schema version.
    """
    from bakery_stock.infrastructure.storage.sqlite import get_connection, get_database
    from bakery_stock.infrastructure.storage.sqlite.migrations import current_schema_version

    db_status = DatabaseHealthResponse(reachable=False)

    try:
        database = await get_database()
        start = time.time()
        reachable = await database.ping()
        latency = (time.time() - start) * 1000

        schema_version = None
        if reachable:
            async with get_connection() as conn:
                schema_version = await current_schema_version(conn)

        db_status = DatabaseHealthResponse(
            reachable=reachable,
            schema_version=schema_version,
            latency_ms=round(latency, 2),
        )

    except (aiosqlite.Error, DatabaseError, OSError) as e:
        logger.warning("database_health_check_failed", error=str(e))

    return HealthResponse(
        status="healthy" if db_status.reachable else "unhealthy",
        version=get_app_settings().app_version,
        uptime_seconds=time.time() - _start_time,
        database=db_status,
    )
