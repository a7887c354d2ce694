"""
Dependency injection container for FastAPI.

Provides service instances to route handlers. Services are process-wide
singletons so the ledger's per-item locks are shared by all requests.
"""

from functools import lru_cache

from fastapi import Header

from bakery_stock.application.use_cases import (
    BulkImportStockItemsUseCase,
    CalculateProductCostUseCase,
)
from bakery_stock.config import Settings, get_settings
from bakery_stock.core.services import (
    BrandCatalog,
    RecipeService,
    StockItemRegistry,
    StockLedger,
)


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Service dependencies
@lru_cache
def get_stock_ledger() -> StockLedger:
    """Get the stock ledger."""
    return StockLedger()


@lru_cache
def get_stock_item_registry() -> StockItemRegistry:
    """Get the stock item registry."""
    return StockItemRegistry()


@lru_cache
def get_brand_catalog() -> BrandCatalog:
    """Get the brand catalog."""
    return BrandCatalog()


@lru_cache
def get_recipe_service() -> RecipeService:
    """Get the recipe service."""
    return RecipeService()


# Use case dependencies
def get_bulk_import_use_case() -> BulkImportStockItemsUseCase:
    """Get bulk stock item import use case."""
    return BulkImportStockItemsUseCase(registry=get_stock_item_registry())


def get_product_cost_use_case() -> CalculateProductCostUseCase:
    """Get product cost calculation use case."""
    return CalculateProductCostUseCase()


# Request context
def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Acting user from the X-User-ID header, or the configured default."""
    return x_user_id or get_app_settings().ledger.default_user_id


def reset_dependencies() -> None:
    """Drop cached singletons (for testing)."""
    get_app_settings.cache_clear()
    get_stock_ledger.cache_clear()
    get_stock_item_registry.cache_clear()
    get_brand_catalog.cache_clear()
    get_recipe_service.cache_clear()
