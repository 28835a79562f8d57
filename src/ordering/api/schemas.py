"""Pydantic request/response schemas for the Ordering API.

These are external contracts, separate from the ORM models and the cart
read-model dataclasses.
"""

from dataclasses import asdict
from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = 1

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "8c1f0a3e-3f5e-4c1e-9a57-0d5d2f0b6c11",
                    "quantity": 2,
                }
            ]
        }
    }


class SetCartQuantityRequest(BaseModel):
    quantity: int


class GuestCartItemSchema(BaseModel):
    product_id: str
    quantity: int


class MergeGuestCartRequest(BaseModel):
    items: list[GuestCartItemSchema] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class CartAdjustmentSchema(BaseModel):
    code: str
    product_id: str
    product_name: str
    requested_quantity: int
    adjusted_quantity: int
    message: str


class CartItemSchema(BaseModel):
    id: str
    product_id: str
    slug: str
    name: str
    image_url: str | None = None
    price_in_cents: int
    stock_quantity: int
    max_allowed_quantity: int
    quantity: int
    line_total_in_cents: int


class CartSchema(BaseModel):
    items: list[CartItemSchema]
    item_count: int
    subtotal_in_cents: int
    adjustments: list[CartAdjustmentSchema]

    @classmethod
    def from_snapshot(cls, snapshot) -> "CartSchema":
        return cls(
            items=[CartItemSchema(**asdict(item)) for item in snapshot.items],
            item_count=snapshot.item_count,
            subtotal_in_cents=snapshot.subtotal_in_cents,
            adjustments=[
                CartAdjustmentSchema(
                    code=adjustment.code.value,
                    product_id=adjustment.product_id,
                    product_name=adjustment.product_name,
                    requested_quantity=adjustment.requested_quantity,
                    adjusted_quantity=adjustment.adjusted_quantity,
                    message=adjustment.message,
                )
                for adjustment in snapshot.adjustments
            ],
        )


class CartResponse(BaseModel):
    cart: CartSchema


# ---------------------------------------------------------------------------
# Order Response Schemas
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str | None = None
    product_name: str
    unit_amount_in_cents: int
    quantity: int
    line_total_in_cents: int


class OrderSchema(BaseModel):
    id: str
    stripe_checkout_session_id: str
    stripe_payment_intent_id: str | None = None
    user_id: str | None = None
    customer_email: str | None = None
    currency: str
    amount_subtotal_in_cents: int
    amount_total_in_cents: int
    status: str
    paid_at: datetime | None = None
    created_at: datetime
    items: list[OrderItemSchema]

    @classmethod
    def from_order(cls, order) -> "OrderSchema":
        return cls(
            id=order.id,
            stripe_checkout_session_id=order.stripe_checkout_session_id,
            stripe_payment_intent_id=order.stripe_payment_intent_id,
            user_id=order.user_id,
            customer_email=order.customer_email,
            currency=order.currency,
            amount_subtotal_in_cents=order.amount_subtotal_in_cents,
            amount_total_in_cents=order.amount_total_in_cents,
            status=order.status.value,
            paid_at=order.paid_at,
            created_at=order.created_at,
            items=[
                OrderItemSchema(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    unit_amount_in_cents=item.unit_amount_in_cents,
                    quantity=item.quantity,
                    line_total_in_cents=item.line_total_in_cents,
                )
                for item in order.items
            ],
        )


class CheckoutOrderResponse(BaseModel):
    order: OrderSchema | None = None
    message: str | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
