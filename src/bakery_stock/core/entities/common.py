"""Shared value helpers for stock entities."""

import math
import uuid
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, computed_field

QUANTITY_EXP = Decimal("0.001")
PRICE_EXP = Decimal("0.01")

# Arithmetic tolerance for movement bookkeeping
QUANTITY_TOLERANCE = Decimal("0.001")


def to_quantity(value: Decimal | int | float | str) -> Decimal:
    """Quantize a quantity to 3 fractional digits."""
    return Decimal(str(value)).quantize(QUANTITY_EXP, rounding=ROUND_HALF_UP)


def to_price(value: Decimal | int | float | str) -> Decimal:
    """Quantize a price to 2 fractional digits."""
    return Decimal(str(value)).quantize(PRICE_EXP, rounding=ROUND_HALF_UP)


Quantity = Annotated[Decimal, AfterValidator(to_quantity)]
Price = Annotated[Decimal, AfterValidator(to_price)]


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    """Generate a new UUID text ID."""
    return str(uuid.uuid4())


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a filtered listing."""

    items: list[T]
    total: int
    page: int
    limit: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0
