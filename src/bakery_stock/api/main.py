"""
FastAPI application for the bakery stock ledger.

Startup migrates the schema, opens the database and runs the schema and
ledger checks; failing checks are logged but do not stop the service.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bakery_stock.api.middleware import (
    ErrorHandlerMiddleware,
    LoggingMiddleware,
    setup_exception_handlers,
)
from bakery_stock.api.routes import (
    brands_router,
    health_router,
    products_router,
    stock_items_router,
    stock_movements_router,
)
from bakery_stock.config import configure_logging, get_logger, get_settings
from bakery_stock.infrastructure.storage.sqlite import close_database, get_database
from bakery_stock.infrastructure.storage.sqlite.migrations import SchemaMigrator

logger = get_logger(__name__)

# Headers clients need to read back for correlation and timing
EXPOSED_HEADERS = ["X-Request-ID", "X-Response-Time"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    migrator = SchemaMigrator(settings.storage.db_path)
    logger.info("stock_service_starting", db_path=str(migrator.db_path))

    outcomes = await migrator.migrate()
    failed = [o.migration.version for o in outcomes if not o.success]
    if failed:
        raise RuntimeError(f"schema migration failed at version(s) {', '.join(failed)}")

    await get_database()

    for check in await migrator.verify():
        if not check.passed:
            logger.warning("schema_check_failed", check=check.name, **check.detail)

    logger.info("stock_service_started", host=settings.api.host, port=settings.api.port)
    try:
        yield
    finally:
        await close_database()
        logger.info("stock_service_stopped")


def create_app() -> FastAPI:
    """Build the API with middleware, error handlers and routers."""
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title="Bakery Stock Ledger API",
        description="Stock items, append-only stock movements, brand pricing and recipe costing",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Last added runs first: CORS, then error handling, then request logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_methods=["GET", "POST", "PATCH", "DELETE"],
            allow_headers=["Content-Type", "X-Request-ID", "X-User-ID"],
            expose_headers=EXPOSED_HEADERS,
        )

    setup_exception_handlers(app)

    for router in (
        health_router,
        stock_items_router,
        stock_movements_router,
        brands_router,
        products_router,
    ):
        app.include_router(router)

    return app


app = create_app()


def run() -> None:
    """``bakery-stock-api`` entry point."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "bakery_stock.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )


if __name__ == "__main__":
    run()
