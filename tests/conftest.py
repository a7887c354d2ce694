"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from bakery_stock.core.entities import (
    Brand,
    Product,
    ProductStockItem,
    StockItem,
    StockItemBrand,
    StockItemStatus,
)
from bakery_stock.infrastructure.storage.sqlite.migrations import SchemaMigrator


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with the real schema applied."""
    await SchemaMigrator(temp_db_path).migrate(backup=False)
    return temp_db_path


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.readers = 2
    mock.storage.busy_timeout = 5000
    return mock


@pytest.fixture
async def db(migrated_db: Path, mock_settings) -> AsyncGenerator[Path, None]:
    """Point the global database handle at the migrated temp database."""
    import bakery_stock.infrastructure.storage.sqlite.connection as conn_module

    conn_module._database = None
    with patch.object(conn_module, "get_settings", return_value=mock_settings):
        try:
            yield migrated_db
        finally:
            await conn_module.close_database()


@pytest.fixture
async def api_client(db: Path) -> AsyncGenerator[AsyncClient, None]:
    """Async client against the real app, backed by the temp database."""
    from bakery_stock.api.dependencies import reset_dependencies
    from bakery_stock.api.main import app

    reset_dependencies()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    reset_dependencies()


# Entity factories


@pytest.fixture
def flour() -> StockItem:
    return StockItem(
        id="item-flour",
        name="Flour",
        unit_of_measure="kg",
        current_quantity=Decimal("100"),
        reorder_threshold=Decimal("20"),
        status=StockItemStatus.AVAILABLE,
        version=3,
    )


@pytest.fixture
def sample_brand() -> Brand:
    return Brand(id="brand-1", name="Mill Co")


@pytest.fixture
def sample_product() -> Product:
    return Product(id="prod-1", name="Sourdough loaf", price=Decimal("6.50"))


def _make_link(
    stock_item_id: str,
    brand_id: str,
    price_after_tax: str,
    price_before_tax: str | None = None,
    is_preferred: bool = True,
    brand_name: str | None = None,
) -> StockItemBrand:
    """Build a brand link for costing tests."""
    return StockItemBrand(
        id=f"link-{stock_item_id}-{brand_id}",
        stock_item_id=stock_item_id,
        brand_id=brand_id,
        brand_name=brand_name,
        price_before_tax=Decimal(price_before_tax or price_after_tax),
        price_after_tax=Decimal(price_after_tax),
        is_preferred=is_preferred,
    )


def _make_ingredient(
    product_id: str,
    stock_item_id: str,
    quantity: str,
    preferred_brand_id: str | None = None,
) -> ProductStockItem:
    return ProductStockItem(
        id=f"line-{product_id}-{stock_item_id}",
        product_id=product_id,
        stock_item_id=stock_item_id,
        quantity=Decimal(quantity),
        preferred_brand_id=preferred_brand_id,
    )


@pytest.fixture
def make_link():
    return _make_link


@pytest.fixture
def make_ingredient():
    return _make_ingredient
