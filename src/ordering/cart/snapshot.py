"""Cart read-model.

A ``CartSnapshot`` is computed on every read from cart rows joined to live
product data and is never persisted. ``CartAdjustment`` records describe the
automatic corrections made while computing it; they are informational, not
errors.
"""

import math
from dataclasses import dataclass, field
from enum import Enum

UNKNOWN_PRODUCT_NAME = "Item"


class AdjustmentCode(Enum):
    CLAMPED_TO_STOCK = "CLAMPED_TO_STOCK"
    REMOVED_UNAVAILABLE = "REMOVED_UNAVAILABLE"


@dataclass(frozen=True)
class CartAdjustment:
    code: AdjustmentCode
    product_id: str
    product_name: str
    requested_quantity: int
    adjusted_quantity: int
    message: str


@dataclass(frozen=True)
class CartSnapshotItem:
    id: str
    product_id: str
    slug: str
    name: str
    image_url: str | None
    price_in_cents: int
    stock_quantity: int
    max_allowed_quantity: int
    quantity: int
    line_total_in_cents: int


@dataclass(frozen=True)
class CartSnapshot:
    items: list[CartSnapshotItem] = field(default_factory=list)
    adjustments: list[CartAdjustment] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal_in_cents(self) -> int:
        return sum(item.line_total_in_cents for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


def normalize_quantity(value) -> int:
    """Floor to a whole number, never below zero. Non-numbers count as zero."""
    if isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, math.floor(number))


def clamp_adjustment(
    product_id: str, product_name: str, requested_quantity: int, adjusted_quantity: int
) -> CartAdjustment:
    return CartAdjustment(
        code=AdjustmentCode.CLAMPED_TO_STOCK,
        product_id=product_id,
        product_name=product_name,
        requested_quantity=requested_quantity,
        adjusted_quantity=adjusted_quantity,
        message=f"{product_name} was adjusted to {adjusted_quantity} because of available stock.",
    )


def unavailable_adjustment(product_id: str, product_name: str | None, requested_quantity: int) -> CartAdjustment:
    product_name = product_name or UNKNOWN_PRODUCT_NAME
    return CartAdjustment(
        code=AdjustmentCode.REMOVED_UNAVAILABLE,
        product_id=product_id,
        product_name=product_name,
        requested_quantity=requested_quantity,
        adjusted_quantity=0,
        message=f"{product_name} is no longer available and was removed from your cart.",
    )
