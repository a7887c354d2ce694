"""
Error responses for the stock API.

Domain errors map to a status by kind: validation 400, not found 404,
conflict 409, business rule 422, everything else 500. Every body carries
the error code, a message, a recovery hint, the structured details of the
domain error and the request ID used in the logs.
"""

from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from bakery_stock.application.dto.responses import ErrorResponse
from bakery_stock.config import get_logger
from bakery_stock.core.exceptions import (
    BakeryStockError,
    BusinessRuleError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = get_logger(__name__)

KIND_STATUS: tuple[tuple[type[BakeryStockError], int], ...] = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (BusinessRuleError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)

# Error code and hint used when nothing more specific is known
STATUS_DEFAULTS: dict[int, tuple[str, str]] = {
    400: ("BAD_REQUEST", "Check the request parameters and body."),
    404: ("NOT_FOUND", "The requested resource was not found. Verify the ID."),
    405: ("METHOD_NOT_ALLOWED", "Check the HTTP method for this path."),
    409: ("CONFLICT", "The request conflicts with the current state of the resource."),
    422: ("UNPROCESSABLE_ENTITY", "The request could not be processed."),
    500: ("INTERNAL_ERROR", "An internal error occurred. Check server logs."),
}

HINTS: dict[str, str] = {
    "STOCK_ITEM_NOT_FOUND": "List stock items with GET /api/stock-items.",
    "BRAND_NOT_FOUND": "List brands with GET /api/brands.",
    "PRODUCT_NOT_FOUND": "List products with GET /api/products.",
    "STOCK_MOVEMENT_NOT_FOUND": "Search movements with GET /api/stock-movements.",
    "STOCK_ITEM_BRAND_NOT_FOUND": "Link the brand first with POST /api/stock-items/{id}/brands.",
    "PRODUCT_STOCK_ITEM_NOT_FOUND": "The stock item is not part of this product's recipe.",
    "DUPLICATE_STOCK_ITEM": "Stock item names are unique. Choose another name or restore the old item.",
    "DUPLICATE_STOCK_ITEM_BRAND": "Update the existing link with PATCH instead.",
    "DUPLICATE_INGREDIENT": "Update the existing recipe line with PATCH instead.",
    "STOCK_ITEM_IN_USE": "Remove the item from all product recipes before deleting it.",
    "INSUFFICIENT_STOCK": "Receive more stock or consume a smaller quantity.",
    "UNPRICED_INGREDIENT": "Set a preferred brand with a price for every ingredient.",
    "STALE_STOCK_ITEM": "The stock item kept changing concurrently. Retry the request.",
    "VALIDATION_ERROR": "Check the named fields and their types.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
}


def status_for(exc: Exception) -> int:
    """HTTP status for an exception, 500 when unmapped."""
    for kind, code in KIND_STATUS:
        if isinstance(exc, kind):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _hint(error_code: str, status_code: int) -> str | None:
    return HINTS.get(error_code) or STATUS_DEFAULTS.get(status_code, ("", None))[1]


def _body(request: Request, status_code: int, **fields) -> JSONResponse:
    error = ErrorResponse(
        path=request.url.path,
        request_id=getattr(request.state, "request_id", None),
        hint=_hint(fields["error_code"], status_code),
        **fields,
    )
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


def build_error_response(request: Request, exc: Exception) -> JSONResponse:
    """Log an exception and render it as an error body."""
    status_code = status_for(exc)
    if isinstance(exc, BakeryStockError):
        error_code, message, details = exc.code, exc.message, exc.details
    else:
        error_code, message, details = STATUS_DEFAULTS[500][0], "Internal server error", {}

    if status_code >= 500:
        logger.exception("request_error", path=request.url.path, error_code=error_code)
    else:
        logger.warning(
            "request_rejected", path=request.url.path, error_code=error_code, error=message
        )

    return _body(request, status_code, error_code=error_code, message=message, details=details)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last line of defence for anything the exception handlers did not catch."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return build_error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, request validation and HTTP errors."""

    @app.exception_handler(BakeryStockError)
    async def domain_exception_handler(request: Request, exc: BakeryStockError) -> JSONResponse:
        return build_error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        problems = [
            f"{' -> '.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        return _body(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_ERROR",
            message="Request validation failed",
            detail="; ".join(problems),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        error_code = STATUS_DEFAULTS.get(exc.status_code, ("HTTP_ERROR", None))[0]
        return _body(
            request,
            exc.status_code,
            error_code=error_code,
            message=str(exc.detail) if exc.detail else "An error occurred",
        )
