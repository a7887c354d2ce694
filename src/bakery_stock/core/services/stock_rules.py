"""
Pure stock rules: status derivation, input validation and movement arithmetic.

Every write path calls these explicitly before persisting.
"""

from decimal import Decimal, InvalidOperation

from bakery_stock.core.entities import (
    MAX_REASON_LENGTH,
    QUANTITY_TOLERANCE,
    REASON_REQUIRED_TYPES,
    MovementType,
    StockItem,
    StockItemStatus,
    StockMovement,
    to_price,
    to_quantity,
)
from bakery_stock.core.exceptions import ValidationError

MAX_NAME_LENGTH = 255
MAX_UNIT_LENGTH = 50


def compute_status(quantity: Decimal, reorder_threshold: Decimal | None) -> StockItemStatus:
    """
    Derive availability from quantity and reorder threshold.

    quantity == 0 is OUT_OF_STOCK; at or below a set threshold is LOW_STOCK;
    anything else is AVAILABLE.
    """
    if quantity == 0:
        return StockItemStatus.OUT_OF_STOCK
    if reorder_threshold is not None and quantity <= reorder_threshold:
        return StockItemStatus.LOW_STOCK
    return StockItemStatus.AVAILABLE


def with_status(item: StockItem) -> StockItem:
    """Return the item with its status recomputed."""
    item.status = compute_status(item.current_quantity, item.reorder_threshold)
    return item


def validate_name(value: str | None, field: str = "name", max_length: int = MAX_NAME_LENGTH) -> str:
    """Strip and bound a required text field."""
    name = (value or "").strip()
    if not name:
        raise ValidationError(field, "must not be empty", value)
    if len(name) > max_length:
        raise ValidationError(field, f"must be at most {max_length} characters", value)
    return name


def validate_unit(value: str | None) -> str:
    return validate_name(value, field="unit_of_measure", max_length=MAX_UNIT_LENGTH)


def parse_quantity(value, field: str) -> Decimal:
    try:
        return to_quantity(value)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError(field, "must be a number", value) from e


def validate_non_negative(value, field: str) -> Decimal:
    quantity = parse_quantity(value, field)
    if quantity < 0:
        raise ValidationError(field, "must not be negative", value)
    return quantity


def validate_positive(value, field: str = "quantity") -> Decimal:
    quantity = parse_quantity(value, field)
    if quantity <= 0:
        raise ValidationError(field, "must be greater than 0", value)
    return quantity


def validate_reason(
    reason: str | None, movement_type: MovementType
) -> str | None:
    """Check the reason requirement and length for a movement type."""
    cleaned = reason.strip() if reason else None
    if movement_type in REASON_REQUIRED_TYPES and not cleaned:
        raise ValidationError("reason", f"is required for {movement_type.value} movements", reason)
    if cleaned and len(cleaned) > MAX_REASON_LENGTH:
        raise ValidationError(
            "reason", f"must be at most {MAX_REASON_LENGTH} characters", reason
        )
    return cleaned or None


def validate_pagination(page: int, limit: int, max_limit: int) -> None:
    if page < 1:
        raise ValidationError("page", "must be at least 1", page)
    if limit < 1 or limit > max_limit:
        raise ValidationError("limit", f"must be between 1 and {max_limit}", limit)


def validate_brand_prices(price_before_tax, price_after_tax) -> tuple[Decimal, Decimal]:
    """Both prices non-negative and after-tax not below before-tax."""
    try:
        before = to_price(price_before_tax)
        after = to_price(price_after_tax)
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError("price", "must be a number", f"{price_before_tax}/{price_after_tax}") from e
    if before < 0:
        raise ValidationError("price_before_tax", "must not be negative", price_before_tax)
    if after < 0:
        raise ValidationError("price_after_tax", "must not be negative", price_after_tax)
    if after < before:
        raise ValidationError(
            "price_after_tax",
            "must be greater than or equal to price_before_tax",
            price_after_tax,
        )
    return before, after


def validate_movement(movement: StockMovement) -> None:
    """Check the arithmetic and reason invariants of a movement record."""
    if movement.quantity == 0:
        raise ValidationError("quantity", "must not be zero", movement.quantity)
    expected = movement.previous_quantity + movement.quantity
    if abs(movement.new_quantity - expected) > QUANTITY_TOLERANCE:
        raise ValidationError(
            "new_quantity",
            f"must equal previous_quantity + quantity ({expected})",
            movement.new_quantity,
        )
    if movement.new_quantity < 0:
        raise ValidationError("new_quantity", "must not be negative", movement.new_quantity)
    validate_reason(movement.reason, movement.type)


def build_movement(
    item: StockItem,
    movement_type: MovementType,
    delta: Decimal,
    user_id: str,
    reason: str | None = None,
    reference_type: str | None = None,
    reference_id: str | None = None,
) -> StockMovement:
    """Build and validate the movement that applies `delta` to `item`."""
    previous = item.current_quantity
    movement = StockMovement(
        stock_item_id=item.id,
        stock_item_name=item.name,
        type=movement_type,
        quantity=delta,
        previous_quantity=previous,
        new_quantity=previous + delta,
        reason=reason,
        reference_type=reference_type,
        reference_id=reference_id,
        user_id=user_id,
    )
    validate_movement(movement)
    return movement
