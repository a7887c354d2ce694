"""Tests for error mapping to HTTP status codes and the error body."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from bakery_stock.api.middleware import ErrorHandlerMiddleware, setup_exception_handlers
from bakery_stock.api.middleware.error_handler import status_for
from bakery_stock.core.exceptions import (
    DatabaseError,
    DuplicateStockItemError,
    InsufficientStockError,
    StaleStockItemError,
    StockItemNotFoundError,
    ValidationError,
)


@pytest.mark.parametrize(
    "exc,expected",
    [
        (ValidationError("quantity", "must be greater than 0", 0), 400),
        (StockItemNotFoundError("x"), 404),
        (DuplicateStockItemError("Flour"), 409),
        (InsufficientStockError("x", "5", "1"), 422),
        (StaleStockItemError("x", 1), 500),
        (DatabaseError("insert", "disk full"), 500),
        (RuntimeError("boom"), 500),
    ],
)
def test_status_for(exc, expected):
    assert status_for(exc) == expected


class TestErrorBodies:
    async def test_not_found(self, api_client: AsyncClient):
        response = await api_client.get(
            "/api/stock-items/missing", headers={"X-Request-ID": "req-404"}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "STOCK_ITEM_NOT_FOUND"
        assert body["path"] == "/api/stock-items/missing"
        assert body["request_id"] == "req-404"
        assert body["hint"]
        assert "timestamp" in body

    async def test_domain_validation(self, api_client: AsyncClient):
        response = await api_client.post(
            "/api/stock-items", json={"name": "   ", "unit_of_measure": "kg"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert body["details"]["field"] == "name"

    async def test_duplicate_name(self, api_client: AsyncClient):
        body = {"name": "Flour", "unit_of_measure": "kg"}
        await api_client.post("/api/stock-items", json=body)

        response = await api_client.post("/api/stock-items", json=body)

        assert response.status_code == 409
        assert response.json()["error_code"] == "DUPLICATE_STOCK_ITEM"

    async def test_insufficient_stock(self, api_client: AsyncClient):
        created = await api_client.post(
            "/api/stock-items",
            json={"name": "Flour", "unit_of_measure": "kg", "initial_quantity": "10"},
        )
        item_id = created.json()["id"]

        response = await api_client.post(
            f"/api/stock-items/{item_id}/consume", json={"quantity": "11"}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "INSUFFICIENT_STOCK"
        assert body["details"]["available"] == "10.000"

    async def test_missing_reason(self, api_client: AsyncClient):
        created = await api_client.post(
            "/api/stock-items",
            json={"name": "Flour", "unit_of_measure": "kg", "initial_quantity": "10"},
        )

        response = await api_client.post(
            f"/api/stock-items/{created.json()['id']}/adjust", json={"quantity": "-1"}
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "reason"

    async def test_malformed_body(self, api_client: AsyncClient):
        response = await api_client.post("/api/stock-items", json={"name": "Flour"})

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert "unit_of_measure" in body["detail"]

    async def test_bad_movement_type_filter(self, api_client: AsyncClient):
        response = await api_client.get("/api/stock-movements", params={"type": "stolen"})
        assert response.status_code == 422

    async def test_reversed_date_range(self, api_client: AsyncClient):
        response = await api_client.get(
            "/api/stock-movements",
            params={"start_date": "2024-02-01T00:00:00", "end_date": "2024-01-01T00:00:00"},
        )
        assert response.status_code == 400


async def test_unexpected_error_is_500():
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise DatabaseError("insert", "disk full")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json()["error_code"] == "DATABASE_ERROR"


async def test_unknown_error_is_not_leaked():
    app = FastAPI()
    app.add_middleware(ErrorHandlerMiddleware)
    setup_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("connection string with secrets")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["error_code"] == "INTERNAL_ERROR"
    assert "secrets" not in body["message"]
