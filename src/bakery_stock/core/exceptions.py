"""
Domain exceptions for the bakery stock ledger.

Every error crossing the core boundary is a BakeryStockError carrying a
machine-readable code and structured details, so the HTTP layer can map
each kind to a status code deterministically.
"""

from decimal import Decimal
from typing import Any


class BakeryStockError(Exception):
    """Base exception for all stock ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(BakeryStockError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


# Not Found Exceptions
class NotFoundError(BakeryStockError):
    """Referenced entity does not exist or is soft-deleted."""

    entity: str = "Entity"

    def __init__(self, entity_id: str, code: str | None = None):
        super().__init__(
            f"{self.entity} not found: {entity_id}",
            code=code or "NOT_FOUND",
            details={"entity": self.entity, "id": entity_id},
        )


class StockItemNotFoundError(NotFoundError):
    """Stock item not found."""

    entity = "Stock item"

    def __init__(self, stock_item_id: str):
        super().__init__(stock_item_id, code="STOCK_ITEM_NOT_FOUND")


class BrandNotFoundError(NotFoundError):
    """Brand not found."""

    entity = "Brand"

    def __init__(self, brand_id: str):
        super().__init__(brand_id, code="BRAND_NOT_FOUND")


class ProductNotFoundError(NotFoundError):
    """Product not found."""

    entity = "Product"

    def __init__(self, product_id: str):
        super().__init__(product_id, code="PRODUCT_NOT_FOUND")


class StockMovementNotFoundError(NotFoundError):
    """Stock movement not found."""

    entity = "Stock movement"

    def __init__(self, movement_id: str):
        super().__init__(movement_id, code="STOCK_MOVEMENT_NOT_FOUND")


class StockItemBrandNotFoundError(NotFoundError):
    """Stock item is not linked to the brand."""

    entity = "Stock item brand association"

    def __init__(self, stock_item_id: str, brand_id: str):
        super().__init__(f"{stock_item_id}:{brand_id}", code="STOCK_ITEM_BRAND_NOT_FOUND")
        self.details.update({"stock_item_id": stock_item_id, "brand_id": brand_id})


class ProductStockItemNotFoundError(NotFoundError):
    """Recipe line not found for the product and stock item."""

    entity = "Product stock item"

    def __init__(self, product_id: str, stock_item_id: str):
        super().__init__(f"{product_id}/{stock_item_id}", code="PRODUCT_STOCK_ITEM_NOT_FOUND")
        self.details.update({"product_id": product_id, "stock_item_id": stock_item_id})


# Conflict Exceptions
class ConflictError(BakeryStockError):
    """Uniqueness violation or blocked state change."""

    pass


class DuplicateStockItemError(ConflictError):
    """A stock item with the same name already exists."""

    def __init__(self, name: str):
        super().__init__(
            f"Stock item with name '{name}' already exists",
            code="DUPLICATE_STOCK_ITEM",
            details={"field": "name", "value": name},
        )


class DuplicateStockItemBrandError(ConflictError):
    """Brand is already associated with the stock item."""

    def __init__(self, stock_item_id: str, brand_id: str):
        super().__init__(
            "Brand is already associated with this stock item",
            code="DUPLICATE_STOCK_ITEM_BRAND",
            details={"stock_item_id": stock_item_id, "brand_id": brand_id},
        )


class DuplicateIngredientError(ConflictError):
    """Stock item is already part of the product recipe."""

    def __init__(self, product_id: str, stock_item_id: str):
        super().__init__(
            "Stock item already linked to this product",
            code="DUPLICATE_INGREDIENT",
            details={"product_id": product_id, "stock_item_id": stock_item_id},
        )


class StockItemInUseError(ConflictError):
    """Stock item is still referenced by active recipes."""

    def __init__(self, stock_item_id: str, product_count: int):
        super().__init__(
            f"Stock item in use by {product_count} product(s)",
            code="STOCK_ITEM_IN_USE",
            details={"stock_item_id": stock_item_id, "product_count": product_count},
        )


# Business Rule Exceptions
class BusinessRuleError(BakeryStockError):
    """Operation would violate a domain invariant."""

    pass


class InsufficientStockError(BusinessRuleError):
    """Not enough stock to cover the requested consumption."""

    def __init__(self, stock_item_id: str, requested: Decimal, available: Decimal):
        super().__init__(
            f"Insufficient quantity for stock item {stock_item_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_STOCK",
            details={
                "stock_item_id": stock_item_id,
                "requested": str(requested),
                "available": str(available),
            },
        )


class UnpricedIngredientError(BusinessRuleError):
    """No brand price can be resolved for a recipe ingredient."""

    def __init__(self, product_id: str, stock_item_id: str):
        super().__init__(
            f"Cannot price stock item {stock_item_id} for product {product_id}: "
            "no preferred brand price available",
            code="UNPRICED_INGREDIENT",
            details={"product_id": product_id, "stock_item_id": stock_item_id},
        )


# Storage Exceptions
class StorageError(BakeryStockError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class StaleStockItemError(StorageError):
    """Stock item changed between read and write."""

    def __init__(self, stock_item_id: str, expected_version: int):
        super().__init__(
            f"Stock item {stock_item_id} was modified concurrently",
            code="STALE_STOCK_ITEM",
            details={"stock_item_id": stock_item_id, "expected_version": expected_version},
        )
