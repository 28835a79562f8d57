"""Guest cart merge.

Folds the items a visitor collected before signing in into their server
cart. Quantities are added to what the user already has, never replaced.
Callers merge once per sign-in and clear the guest store right after (see
``ordering.cart.guest.SignInCartSync``); a second merge of the same items
would add them again.
"""

from collections.abc import Iterable, Mapping

import structlog

from ordering.cart.management import load_products, lock_cart, normalize_cart
from ordering.cart.snapshot import CartSnapshot, clamp_adjustment, normalize_quantity, unavailable_adjustment
from shared.database import get_database

logger = structlog.get_logger(__name__)


def sum_guest_quantities(items: Iterable[Mapping]) -> dict[str, int]:
    """Total quantity per trimmed product id, skipping blanks and non-positive quantities."""
    totals: dict[str, int] = {}
    for item in items:
        product_id = str(item.get("product_id") or "").strip()
        if not product_id:
            continue
        quantity = normalize_quantity(item.get("quantity"))
        if quantity <= 0:
            continue
        totals[product_id] = totals.get(product_id, 0) + quantity
    return totals


def merge_guest_cart(user_id: str, items: Iterable[Mapping]) -> CartSnapshot:
    guest_quantities = sum_guest_quantities(items)

    with get_database().unit_of_work() as session:
        cart = lock_cart(session, user_id)
        adjustments = []

        products = load_products(session, guest_quantities)

        for product_id, guest_quantity in guest_quantities.items():
            product = products.get(product_id)
            if product is None or not product.is_published:
                adjustments.append(unavailable_adjustment(product_id, None, guest_quantity))
                continue

            stock_quantity = normalize_quantity(product.stock_quantity)
            if stock_quantity <= 0:
                adjustments.append(unavailable_adjustment(product_id, product.name, guest_quantity))
                continue

            item = cart.item_for_product(product_id)
            existing_quantity = normalize_quantity(item.quantity) if item is not None else 0
            requested_quantity = existing_quantity + guest_quantity
            adjusted_quantity = min(requested_quantity, stock_quantity)

            if item is None:
                cart.add_line(product_id, adjusted_quantity)
            else:
                item.quantity = adjusted_quantity

            if adjusted_quantity < requested_quantity:
                adjustments.append(clamp_adjustment(product_id, product.name, requested_quantity, adjusted_quantity))

        session.flush()

        logger.info(
            "guest_cart_merged",
            user_id=user_id,
            products=len(guest_quantities),
            adjustments=len(adjustments),
        )
        return normalize_cart(session, cart, adjustments)
