"""Cart lookup and normalization.

``normalize_cart`` is the single pass every cart operation ends with: each
stored line is checked against live product data, unavailable lines are
deleted and over-stock quantities are clamped and persisted. Running it
again with no outside change produces no further adjustments.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalogue.product.product import Product
from ordering.cart.cart import Cart
from ordering.cart.snapshot import (
    CartAdjustment,
    CartSnapshot,
    CartSnapshotItem,
    clamp_adjustment,
    normalize_quantity,
    unavailable_adjustment,
)
from shared.database import get_database

logger = structlog.get_logger(__name__)


def _select_cart(session: Session, user_id: str) -> Cart | None:
    return session.scalar(select(Cart).where(Cart.user_id == user_id).with_for_update())


def lock_cart(session: Session, user_id: str) -> Cart:
    """Load (or lazily create) the user's cart, row-locked until the transaction ends."""
    cart = _select_cart(session, user_id)
    if cart is not None:
        return cart

    try:
        with session.begin_nested():
            cart = Cart(user_id=user_id)
            session.add(cart)
    except IntegrityError:
        # Another request created it first.
        cart = _select_cart(session, user_id)
        if cart is None:
            raise
        return cart

    logger.debug("cart_created", user_id=user_id, cart_id=cart.id)
    return cart


def load_products(session: Session, product_ids) -> dict[str, Product]:
    product_ids = set(product_ids)
    if not product_ids:
        return {}
    return {product.id: product for product in session.scalars(select(Product).where(Product.id.in_(product_ids)))}


def normalize_cart(
    session: Session,
    cart: Cart,
    adjustments: list[CartAdjustment] | None = None,
) -> CartSnapshot:
    """Reconcile stored lines with live stock and build the snapshot.

    ``adjustments`` produced earlier in the same operation are kept in front
    of the ones found here.
    """
    adjustments = list(adjustments or [])
    products = load_products(session, (item.product_id for item in cart.items))
    snapshot_items: list[CartSnapshotItem] = []

    for item in list(cart.items):
        requested_quantity = normalize_quantity(item.quantity)
        product = products.get(item.product_id)
        stock_quantity = normalize_quantity(product.stock_quantity) if product is not None else 0
        adjusted_quantity = min(requested_quantity, stock_quantity)

        if product is None or not product.is_published or adjusted_quantity <= 0:
            cart.remove_line(item)
            adjustments.append(
                unavailable_adjustment(item.product_id, product.name if product else None, requested_quantity)
            )
            continue

        if adjusted_quantity != requested_quantity:
            item.quantity = adjusted_quantity
            adjustments.append(clamp_adjustment(product.id, product.name, requested_quantity, adjusted_quantity))

        snapshot_items.append(
            CartSnapshotItem(
                id=item.id,
                product_id=product.id,
                slug=product.slug,
                name=product.name,
                image_url=product.image_url,
                price_in_cents=product.price_in_cents,
                stock_quantity=stock_quantity,
                max_allowed_quantity=stock_quantity,
                quantity=adjusted_quantity,
                line_total_in_cents=product.price_in_cents * adjusted_quantity,
            )
        )

    session.flush()

    if adjustments:
        logger.info(
            "cart_adjusted",
            cart_id=cart.id,
            adjustments=[(a.code.value, a.product_id, a.adjusted_quantity) for a in adjustments],
        )

    return CartSnapshot(items=snapshot_items, adjustments=adjustments)


def get_snapshot(user_id: str) -> CartSnapshot:
    """Current, normalized view of the user's cart."""
    with get_database().unit_of_work() as session:
        cart = lock_cart(session, user_id)
        return normalize_cart(session, cart)
