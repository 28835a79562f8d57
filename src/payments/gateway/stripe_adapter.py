"""Stripe payment gateway adapter.

Uses the stripe-python SDK to create hosted Checkout Sessions, page
through their line items and verify webhook signatures with the endpoint's
signing secret.
"""

import json

import stripe
import structlog

from payments.gateway.port import (
    CheckoutSessionRequest,
    CreatedCheckoutSession,
    GatewayEvent,
    GatewayLineItem,
    PaymentGateway,
)
from shared.exceptions import InvalidSignatureError, PaymentGatewayError

logger = structlog.get_logger(__name__)

LINE_ITEM_PAGE_SIZE = 100


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def _line_item_params(self, request: CheckoutSessionRequest) -> list[dict]:
        params = []
        for line in request.line_items:
            product_data = {"name": line.name, "metadata": {"product_id": line.product_id}}
            if line.image_url:
                product_data["images"] = [line.image_url]
            params.append(
                {
                    "quantity": line.quantity,
                    "price_data": {
                        "currency": request.currency,
                        "unit_amount": line.unit_amount_in_cents,
                        "product_data": product_data,
                    },
                }
            )
        return params

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CreatedCheckoutSession:
        params = {
            "mode": "payment",
            "line_items": self._line_item_params(request),
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": request.metadata,
        }
        if request.shipping_countries:
            params["shipping_address_collection"] = {"allowed_countries": request.shipping_countries}
        if request.customer_email:
            params["customer_email"] = request.customer_email

        try:
            session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            logger.error("stripe_checkout_create_failed", error=str(exc))
            raise PaymentGatewayError("Unable to start checkout. Check Stripe configuration.") from exc

        return CreatedCheckoutSession(id=session["id"], url=session.get("url"))

    def list_line_items(self, session_id: str) -> list[GatewayLineItem]:
        page = stripe.checkout.Session.list_line_items(
            session_id,
            api_key=self.api_key,
            limit=LINE_ITEM_PAGE_SIZE,
            expand=["data.price.product"],
        )
        return [GatewayLineItem.from_mapping(item.to_dict()) for item in page.auto_paging_iter()]

    def construct_event(self, payload: bytes | str, signature: str | None) -> GatewayEvent:
        if not signature:
            raise InvalidSignatureError("Missing stripe-signature header.")

        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")

        try:
            stripe.WebhookSignature.verify_header(
                payload, signature, self.webhook_secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE
            )
            data = json.loads(payload)
        except (stripe.SignatureVerificationError, ValueError) as exc:
            logger.warning("stripe_signature_rejected", error=str(exc))
            raise InvalidSignatureError("Invalid Stripe signature.") from None

        return GatewayEvent.from_mapping(data)
