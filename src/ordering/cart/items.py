"""Cart item operations: add, set quantity, remove.

Each call runs in one transaction holding the cart row lock, and returns a
snapshot normalized in that same transaction.
"""

import math

import structlog

from catalogue.product.product import Product
from ordering.cart.management import lock_cart, normalize_cart
from ordering.cart.snapshot import CartSnapshot, clamp_adjustment, normalize_quantity, unavailable_adjustment
from shared.database import get_database
from shared.exceptions import CartItemNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


def _whole_number(value, field: str, minimum: int) -> int:
    if (
        isinstance(value, bool)
        or not isinstance(value, int | float)
        or not math.isfinite(value)
        or value != int(value)
        or value < minimum
    ):
        qualifier = "a positive whole number" if minimum > 0 else "a whole number of 0 or more"
        raise ValidationError({field: [f"Quantity must be {qualifier}."]})
    return int(value)


def add_item(user_id: str, product_id: str, quantity) -> CartSnapshot:
    """Add ``quantity`` units on top of whatever is already in the cart, up to stock."""
    delta = _whole_number(quantity, "quantity", minimum=1)
    product_id = (product_id or "").strip()
    if not product_id:
        raise ValidationError({"product_id": ["Product is required."]})

    with get_database().unit_of_work() as session:
        cart = lock_cart(session, user_id)
        adjustments = []

        product = session.get(Product, product_id)
        stock_quantity = normalize_quantity(product.stock_quantity) if product is not None else 0

        if product is None or not product.is_published or stock_quantity <= 0:
            adjustments.append(unavailable_adjustment(product_id, product.name if product else None, delta))
            logger.info("cart_add_rejected_unavailable", user_id=user_id, product_id=product_id)
            return normalize_cart(session, cart, adjustments)

        item = cart.item_for_product(product_id)
        existing_quantity = normalize_quantity(item.quantity) if item is not None else 0
        requested_quantity = existing_quantity + delta
        adjusted_quantity = min(requested_quantity, stock_quantity)

        if item is None:
            cart.add_line(product_id, adjusted_quantity)
        else:
            item.quantity = adjusted_quantity
        session.flush()

        if adjusted_quantity < requested_quantity:
            adjustments.append(clamp_adjustment(product_id, product.name, requested_quantity, adjusted_quantity))

        logger.info("cart_item_added", user_id=user_id, product_id=product_id, quantity=adjusted_quantity)
        return normalize_cart(session, cart, adjustments)


def set_quantity(user_id: str, item_id: str, quantity) -> CartSnapshot:
    """Set an absolute quantity. Zero removes the line without an adjustment."""
    requested_quantity = _whole_number(quantity, "quantity", minimum=0)

    with get_database().unit_of_work() as session:
        cart = lock_cart(session, user_id)
        item = cart.item_by_id(item_id)
        if item is None:
            raise CartItemNotFoundError()

        if requested_quantity == 0:
            cart.remove_line(item)
            session.flush()
            logger.info("cart_item_removed", user_id=user_id, product_id=item.product_id)
            return normalize_cart(session, cart)

        adjustments = []
        product = session.get(Product, item.product_id)
        stock_quantity = normalize_quantity(product.stock_quantity) if product is not None else 0

        if product is None or not product.is_published or stock_quantity <= 0:
            cart.remove_line(item)
            session.flush()
            adjustments.append(
                unavailable_adjustment(item.product_id, product.name if product else None, requested_quantity)
            )
            return normalize_cart(session, cart, adjustments)

        adjusted_quantity = min(requested_quantity, stock_quantity)
        item.quantity = adjusted_quantity
        session.flush()

        if adjusted_quantity < requested_quantity:
            adjustments.append(
                clamp_adjustment(item.product_id, product.name, requested_quantity, adjusted_quantity)
            )

        logger.info("cart_quantity_set", user_id=user_id, product_id=item.product_id, quantity=adjusted_quantity)
        return normalize_cart(session, cart, adjustments)


def remove_item(user_id: str, item_id: str) -> CartSnapshot:
    with get_database().unit_of_work() as session:
        cart = lock_cart(session, user_id)
        item = cart.item_by_id(item_id)
        if item is None:
            raise CartItemNotFoundError()

        cart.remove_line(item)
        session.flush()

        logger.info("cart_item_removed", user_id=user_id, product_id=item.product_id)
        return normalize_cart(session, cart)
