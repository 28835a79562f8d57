"""Checkout session initiation.

Builds a processor checkout from the user's freshly normalized cart, using
the live price of each product at this moment. No order is created here;
the webhook path creates it once the processor reports back, so abandoned
checkouts leave nothing behind.
"""

import structlog

from identity.user import sync_user
from ordering.cart.management import get_snapshot
from payments.gateway import get_gateway
from payments.gateway.port import CheckoutLineItem, CheckoutSessionRequest
from shared.config import get_settings
from shared.database import get_database
from shared.exceptions import EmptyCartError, PaymentGatewayError

logger = structlog.get_logger(__name__)

CHECKOUT_SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


def resolve_base_url(origin: str | None = None) -> str:
    """Redirect base: the caller's Origin header, else the configured base URL."""
    origin = (origin or "").strip()
    if origin:
        return origin.rstrip("/")
    return get_settings().checkout_base_url.strip().rstrip("/")


def _customer_email(user_id: str, email: str | None) -> str | None:
    with get_database().unit_of_work() as session:
        user = sync_user(session, user_id, email)
        return user.email if user else None


def create_checkout_session(user_id: str, origin: str | None = None, email: str | None = None) -> str:
    """Start a hosted checkout for the user's cart and return the redirect URL."""
    snapshot = get_snapshot(user_id)
    if snapshot.is_empty:
        raise EmptyCartError()

    settings = get_settings()
    base_url = resolve_base_url(origin)

    request = CheckoutSessionRequest(
        line_items=[
            CheckoutLineItem(
                product_id=item.product_id,
                name=item.name,
                unit_amount_in_cents=item.price_in_cents,
                quantity=item.quantity,
                image_url=item.image_url,
            )
            for item in snapshot.items
        ],
        success_url=f"{base_url}/checkout/success?session_id={CHECKOUT_SESSION_PLACEHOLDER}",
        cancel_url=f"{base_url}/checkout/cancel",
        currency=settings.checkout_currency.lower(),
        customer_email=_customer_email(user_id, email),
        metadata={"user_id": user_id},
        shipping_countries=settings.allowed_shipping_countries,
    )

    session = get_gateway().create_checkout_session(request)
    if not session.url:
        raise PaymentGatewayError("Unable to create checkout URL.")

    logger.info(
        "checkout_session_created",
        user_id=user_id,
        checkout_session_id=session.id,
        items=snapshot.item_count,
        subtotal=snapshot.subtotal_in_cents,
    )
    return session.url
