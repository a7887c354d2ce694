"""API route modules."""

from bakery_stock.api.routes.brands import router as brands_router
from bakery_stock.api.routes.health import router as health_router
from bakery_stock.api.routes.products import router as products_router
from bakery_stock.api.routes.stock_items import router as stock_items_router
from bakery_stock.api.routes.stock_movements import router as stock_movements_router

__all__ = [
    "health_router",
    "stock_items_router",
    "stock_movements_router",
    "brands_router",
    "products_router",
]
