"""In-memory payment gateway for development and testing.

Behaves like the processor's test mode without any network calls:
checkout sessions are kept in memory together with line items shaped like
the processor's API responses, and webhook payloads are accepted when they
carry the configured test signature.
"""

import json
from uuid import uuid4

from payments.gateway.port import (
    CheckoutSessionRequest,
    CreatedCheckoutSession,
    GatewayEvent,
    GatewayLineItem,
    PaymentGateway,
)
from shared.exceptions import InvalidSignatureError, PaymentGatewayError

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, signature: str = TEST_SIGNATURE) -> None:
        self.signature = signature
        self.should_succeed: bool = True
        self.failure_reason: str = "Checkout unavailable"
        self.sessions: dict[str, CheckoutSessionRequest] = {}
        self.line_items: dict[str, list[dict]] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Checkout unavailable") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_checkout_session(self, request: CheckoutSessionRequest) -> CreatedCheckoutSession:
        self.calls.append({"method": "create_checkout_session", "request": request})

        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason)

        session_id = f"cs_test_{uuid4().hex[:24]}"
        self.sessions[session_id] = request
        self.line_items[session_id] = [
            {
                "id": f"li_{uuid4().hex[:16]}",
                "object": "item",
                "description": line.name,
                "quantity": line.quantity,
                "amount_subtotal": line.unit_amount_in_cents * line.quantity,
                "amount_total": line.unit_amount_in_cents * line.quantity,
                "currency": request.currency,
                "price": {
                    "unit_amount": line.unit_amount_in_cents,
                    "metadata": {},
                    "product": {"name": line.name, "metadata": {"product_id": line.product_id}},
                },
            }
            for line in request.line_items
        ]
        return CreatedCheckoutSession(id=session_id, url=f"https://checkout.fake.local/pay/{session_id}")

    def set_line_items(self, session_id: str, line_items: list[dict]) -> None:
        """Seed the processor-side line items of a session (raw API shape)."""
        self.line_items[session_id] = list(line_items)

    def list_line_items(self, session_id: str) -> list[GatewayLineItem]:
        self.calls.append({"method": "list_line_items", "session_id": session_id})
        return [GatewayLineItem.from_mapping(item) for item in self.line_items.get(session_id, [])]

    def construct_event(self, payload: bytes | str, signature: str | None) -> GatewayEvent:
        if not signature or signature != self.signature:
            raise InvalidSignatureError("Invalid Stripe signature.")
        try:
            data = json.loads(payload)
        except ValueError:
            raise InvalidSignatureError("Invalid Stripe signature.") from None
        if not isinstance(data, dict) or not data.get("id"):
            raise InvalidSignatureError("Invalid Stripe signature.")
        return GatewayEvent.from_mapping(data)
