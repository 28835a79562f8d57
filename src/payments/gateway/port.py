"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement, plus
the processor-neutral views of checkout sessions, line items and webhook
events that the rest of the application consumes. Views are built from the
processor's JSON shapes with ``from_mapping``.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _text(value) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _int_or_none(value) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return int(value)


def _mapping(value) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


@dataclass(frozen=True)
class CheckoutLineItem:
    """One line of an outgoing checkout request."""

    product_id: str
    name: str
    unit_amount_in_cents: int
    quantity: int
    image_url: str | None = None


@dataclass(frozen=True)
class CheckoutSessionRequest:
    line_items: list[CheckoutLineItem]
    success_url: str
    cancel_url: str
    currency: str = "usd"
    customer_email: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    shipping_countries: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CreatedCheckoutSession:
    id: str
    url: str | None


@dataclass(frozen=True)
class CheckoutSessionView:
    """The fields of a processor checkout session that order handling reads."""

    id: str
    payment_status: str | None = None
    payment_intent_id: str | None = None
    customer_email: str | None = None
    currency: str = "usd"
    amount_subtotal: int | None = None
    amount_total: int | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CheckoutSessionView":
        payment_intent = data.get("payment_intent")
        if isinstance(payment_intent, Mapping):
            payment_intent = payment_intent.get("id")

        customer_email = _text(_mapping(data.get("customer_details")).get("email")) or _text(
            data.get("customer_email")
        )

        return cls(
            id=str(data.get("id") or ""),
            payment_status=_text(data.get("payment_status")),
            payment_intent_id=_text(payment_intent),
            customer_email=customer_email,
            currency=(_text(data.get("currency")) or "usd").lower(),
            amount_subtotal=_int_or_none(data.get("amount_subtotal")),
            amount_total=_int_or_none(data.get("amount_total")),
            metadata={str(k): str(v) for k, v in _mapping(data.get("metadata")).items() if v is not None},
        )


@dataclass(frozen=True)
class GatewayLineItem:
    """A purchased line as reported by the processor."""

    id: str | None
    description: str | None
    quantity: int | None
    unit_amount: int | None
    amount_subtotal: int | None
    price_product_id: str | None = None
    product_product_id: str | None = None
    product_deleted: bool = False

    @property
    def product_id(self) -> str | None:
        """Internal product id from price metadata, else from the (non-deleted) product."""
        if self.price_product_id:
            return self.price_product_id
        if self.product_deleted:
            return None
        return self.product_product_id

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GatewayLineItem":
        price = _mapping(data.get("price"))
        product = _mapping(price.get("product"))
        return cls(
            id=_text(data.get("id")),
            description=_text(data.get("description")),
            quantity=_int_or_none(data.get("quantity")),
            unit_amount=_int_or_none(price.get("unit_amount")),
            amount_subtotal=_int_or_none(data.get("amount_subtotal")),
            price_product_id=_text(_mapping(price.get("metadata")).get("product_id")),
            product_product_id=_text(_mapping(product.get("metadata")).get("product_id")),
            product_deleted=bool(product.get("deleted")),
        )


@dataclass(frozen=True)
class GatewayEvent:
    id: str
    type: str
    data_object: Mapping[str, Any] = field(default_factory=dict)

    @property
    def checkout_session(self) -> CheckoutSessionView | None:
        if self.data_object.get("object") != "checkout.session":
            return None
        return CheckoutSessionView.from_mapping(self.data_object)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "GatewayEvent":
        return cls(
            id=str(data.get("id") or ""),
            type=str(data.get("type") or ""),
            data_object=_mapping(_mapping(data.get("data")).get("object")),
        )


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_checkout_session(self, request: CheckoutSessionRequest) -> CreatedCheckoutSession:
        """Create a hosted checkout session and return its redirect URL."""
        ...

    @abstractmethod
    def list_line_items(self, session_id: str) -> list[GatewayLineItem]:
        """Every line item of a checkout session, across all pages."""
        ...

    @abstractmethod
    def construct_event(self, payload: bytes | str, signature: str | None) -> GatewayEvent:
        """Verify a webhook signature and decode the event.

        Raises ``InvalidSignatureError`` when the signature is missing or wrong.
        """
        ...
