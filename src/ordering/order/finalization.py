"""Paid-order finalization.

Webhook events for one checkout session can arrive duplicated and in any
order, so work is split in two steps:

* ``upsert_order_from_session`` creates or refreshes the order from the
  processor's current view. It never moves a settled order back to
  PAYMENT_PENDING, and replaces line items wholesale, so repeating it is
  harmless.
* ``finalize_paid_order`` then decrements stock and marks the order PAID in
  a single transaction. Terminal orders are returned untouched, which is
  what makes repeated or late "paid" signals safe.

When stock cannot be guaranteed the transaction rolls back and the order is
recorded as STOCK_FAILED instead. Payment was taken but fulfilment could
not be; operators reconcile those orders by hand.
"""

from dataclasses import replace

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalogue.product.product import Product
from identity.user import User, find_user_by_email
from ordering.cart.cart import Cart
from ordering.order.line_items import LineItemSnapshot, normalize_line_items, positive_integer
from ordering.order.order import SETTLED_STATUSES, Order, OrderStatus
from payments.gateway.port import CheckoutSessionView, GatewayLineItem
from shared.database import get_database
from shared.exceptions import OrderNotFoundError

logger = structlog.get_logger(__name__)

UPSERT_ATTEMPTS = 2


class StockFinalizationError(Exception):
    """Stock for a paid session cannot be committed. Never leaves this module."""


def resolve_user_id(session: Session, view: CheckoutSessionView) -> str | None:
    """Owner of the checkout: the user named in metadata, else the user with the customer's email."""
    metadata_user_id = (view.metadata.get("user_id") or "").strip()
    if metadata_user_id and session.get(User, metadata_user_id) is not None:
        return metadata_user_id

    if not view.customer_email:
        return None
    user = find_user_by_email(session, view.customer_email)
    return user.id if user else None


def _lock_order(session: Session, **criteria) -> Order | None:
    statement = select(Order).with_for_update()
    for name, value in criteria.items():
        statement = statement.where(getattr(Order, name) == value)
    return session.scalar(statement)


def _known_product_ids(session: Session, line_items: list[LineItemSnapshot]) -> set[str]:
    product_ids = {line_item.product_id for line_item in line_items if line_item.product_id}
    if not product_ids:
        return set()
    return set(session.scalars(select(Product.id).where(Product.id.in_(product_ids))))


def _upsert(session: Session, view: CheckoutSessionView, line_items: list[LineItemSnapshot]) -> Order:
    order = _lock_order(session, stripe_checkout_session_id=view.id)
    user_id = resolve_user_id(session, view)

    if order is None:
        order = Order(stripe_checkout_session_id=view.id, status=OrderStatus.PAYMENT_PENDING)
        session.add(order)
        logger.info("order_created", checkout_session_id=view.id)
    elif order.status not in SETTLED_STATUSES:
        order.status = OrderStatus.PAYMENT_PENDING

    order.user_id = user_id or order.user_id
    order.customer_email = view.customer_email or order.customer_email
    order.stripe_payment_intent_id = view.payment_intent_id or order.stripe_payment_intent_id
    order.currency = view.currency
    order.amount_subtotal_in_cents = view.amount_subtotal or 0
    order.amount_total_in_cents = view.amount_total or 0

    # Order items keep a product reference only while the product exists.
    known = _known_product_ids(session, line_items)
    order.replace_items(
        [
            line_item if line_item.product_id in known else replace(line_item, product_id=None)
            for line_item in line_items
        ]
    )
    session.flush()
    return order


def upsert_order_from_session(view: CheckoutSessionView, line_items: list[GatewayLineItem]) -> Order:
    snapshots = normalize_line_items(line_items)

    attempt = 1
    while True:
        try:
            with get_database().unit_of_work() as session:
                return _upsert(session, view, snapshots)
        except IntegrityError:
            # A concurrent delivery created the order first; the retry updates it.
            if attempt >= UPSERT_ATTEMPTS:
                raise
            attempt += 1
            logger.info("order_upsert_retry", checkout_session_id=view.id)


def aggregate_quantities(line_items: list[LineItemSnapshot]) -> dict[str, int]:
    quantities: dict[str, int] = {}
    for line_item in line_items:
        if not line_item.product_id:
            raise StockFinalizationError("A purchased line item is missing productId metadata.")
        quantities[line_item.product_id] = quantities.get(line_item.product_id, 0) + line_item.quantity

    if not quantities:
        raise StockFinalizationError("No purchasable line items were found for this checkout session.")
    return quantities


def decrement_stock(session: Session, quantities: dict[str, int]) -> None:
    """Check then conditionally decrement every product, all or nothing."""
    rows = session.execute(select(Product.id, Product.stock_quantity).where(Product.id.in_(list(quantities))))
    stock_by_id = {product_id: stock for product_id, stock in rows}
    if len(stock_by_id) != len(quantities):
        raise StockFinalizationError("One or more purchased products no longer exist.")

    for product_id, quantity in quantities.items():
        if stock_by_id[product_id] < quantity:
            raise StockFinalizationError("Insufficient stock for one or more purchased products.")

    for product_id, quantity in quantities.items():
        result = session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StockFinalizationError("Concurrent inventory update prevented checkout finalization.")


def consume_purchased_cart_items(session: Session, user_id: str, quantities: dict[str, int]) -> None:
    """Take purchased quantities out of the buyer's cart. Missing cart or lines are fine."""
    cart = session.scalar(select(Cart).where(Cart.user_id == user_id).with_for_update())
    if cart is None:
        return

    for item in list(cart.items):
        purchased = quantities.get(item.product_id, 0)
        if purchased <= 0:
            continue
        remaining = positive_integer(item.quantity, 0) - purchased
        if remaining <= 0:
            cart.remove_line(item)
        else:
            item.quantity = remaining
    session.flush()


def _mark_stock_failed(order_id: str, view: CheckoutSessionView) -> Order:
    with get_database().unit_of_work() as session:
        order = _lock_order(session, id=order_id)
        if order is None:
            raise OrderNotFoundError()
        if order.is_terminal:
            # A concurrent finalization already settled it.
            return order
        order.mark_stock_failed(view.payment_intent_id, view.customer_email)
        return order


def finalize_paid_order(view: CheckoutSessionView, line_items: list[GatewayLineItem]) -> Order:
    order = upsert_order_from_session(view, line_items)
    if order.is_terminal:
        logger.info("order_already_final", order_id=order.id, status=order.status.value)
        return order

    order_id = order.id
    snapshots = normalize_line_items(line_items)

    try:
        with get_database().unit_of_work() as session:
            order = _lock_order(session, id=order_id)
            if order is None:
                raise OrderNotFoundError()
            if order.is_terminal:
                return order

            quantities = aggregate_quantities(snapshots)
            decrement_stock(session, quantities)
            if order.user_id:
                consume_purchased_cart_items(session, order.user_id, quantities)

            order.mark_paid(view.payment_intent_id, view.customer_email)
            logger.info(
                "order_paid",
                order_id=order.id,
                checkout_session_id=view.id,
                amount_total=order.amount_total_in_cents,
            )
            return order
    except StockFinalizationError as exc:
        logger.warning(
            "order_stock_failed",
            order_id=order_id,
            checkout_session_id=view.id,
            reason=str(exc),
        )
        return _mark_stock_failed(order_id, view)


def mark_async_payment_failed(view: CheckoutSessionView, line_items: list[GatewayLineItem]) -> Order:
    order = upsert_order_from_session(view, line_items)
    if order.is_terminal:
        return order

    with get_database().unit_of_work() as session:
        order = _lock_order(session, id=order.id)
        if order is None:
            raise OrderNotFoundError()
        if order.is_terminal:
            return order
        order.mark_payment_failed(view.payment_intent_id, view.customer_email)
        logger.info("order_payment_failed", order_id=order.id, checkout_session_id=view.id)
        return order
