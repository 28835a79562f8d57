"""Order lookups for the admin console and the checkout success page."""

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ordering.order.order import Order


def list_orders(session: Session, email_query: str | None = None) -> list[Order]:
    """Newest first, optionally filtered by a case-insensitive email fragment."""
    statement = select(Order).options(selectinload(Order.items))
    email_query = (email_query or "").strip().lower()
    if email_query:
        statement = statement.where(func.lower(Order.customer_email).contains(email_query, autoescape=True))
    return list(session.scalars(statement.order_by(Order.created_at.desc(), Order.id)))


def find_order_for_checkout_session(session: Session, checkout_session_id: str) -> Order | None:
    """The order for a checkout session, or None if the webhook has not created it yet."""
    return session.scalar(
        select(Order)
        .options(selectinload(Order.items))
        .where(Order.stripe_checkout_session_id == checkout_session_id)
    )
