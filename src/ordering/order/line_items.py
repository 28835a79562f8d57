"""Normalization of processor line items into order line snapshots."""

import math
from dataclasses import dataclass

from payments.gateway.port import GatewayLineItem

UNKNOWN_PRODUCT_NAME = "Item"


@dataclass(frozen=True)
class LineItemSnapshot:
    product_id: str | None
    product_name: str
    quantity: int
    unit_amount_in_cents: int
    line_total_in_cents: int


def positive_integer(value, fallback: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float) or not math.isfinite(value):
        return fallback
    normalized = math.floor(value)
    return normalized if normalized > 0 else fallback


def normalize_line_item(line_item: GatewayLineItem) -> LineItemSnapshot:
    quantity = positive_integer(line_item.quantity, 1)

    if line_item.unit_amount is not None:
        unit_amount = line_item.unit_amount
    elif line_item.amount_subtotal is not None:
        unit_amount = math.floor(line_item.amount_subtotal / quantity + 0.5)
    else:
        unit_amount = 0

    if line_item.amount_subtotal is not None:
        line_total = line_item.amount_subtotal
    else:
        line_total = unit_amount * quantity

    return LineItemSnapshot(
        product_id=line_item.product_id,
        product_name=line_item.description or UNKNOWN_PRODUCT_NAME,
        quantity=quantity,
        unit_amount_in_cents=unit_amount,
        line_total_in_cents=line_total,
    )


def normalize_line_items(line_items: list[GatewayLineItem]) -> list[LineItemSnapshot]:
    return [normalize_line_item(line_item) for line_item in line_items]
