"""FastAPI routes for the Ordering domain: carts and orders."""

from fastapi import APIRouter, Depends

from identity.access import current_identity, require_admin
from identity.provider import Identity
from ordering.api.schemas import (
    AddToCartRequest,
    CartResponse,
    CartSchema,
    CheckoutOrderResponse,
    MergeGuestCartRequest,
    OrderListResponse,
    OrderSchema,
    SetCartQuantityRequest,
)
from ordering.cart.items import add_item, remove_item, set_quantity
from ordering.cart.management import get_snapshot
from ordering.cart.merge import merge_guest_cart
from ordering.order.review import find_order_for_checkout_session, list_orders
from shared.database import get_database

ORDER_PENDING_MESSAGE = "We have not finished processing this order yet. Please check back in a moment."

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
def get_cart(identity: Identity = Depends(current_identity)) -> CartResponse:
    return CartResponse(cart=CartSchema.from_snapshot(get_snapshot(identity.user_id)))


@cart_router.post("/items", response_model=CartResponse)
def add_cart_item(body: AddToCartRequest, identity: Identity = Depends(current_identity)) -> CartResponse:
    snapshot = add_item(identity.user_id, body.product_id, body.quantity)
    return CartResponse(cart=CartSchema.from_snapshot(snapshot))


@cart_router.patch("/items/{item_id}", response_model=CartResponse)
def set_cart_item_quantity(
    item_id: str, body: SetCartQuantityRequest, identity: Identity = Depends(current_identity)
) -> CartResponse:
    snapshot = set_quantity(identity.user_id, item_id, body.quantity)
    return CartResponse(cart=CartSchema.from_snapshot(snapshot))


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
def remove_cart_item(item_id: str, identity: Identity = Depends(current_identity)) -> CartResponse:
    snapshot = remove_item(identity.user_id, item_id)
    return CartResponse(cart=CartSchema.from_snapshot(snapshot))


@cart_router.post("/merge", response_model=CartResponse)
def merge_cart(body: MergeGuestCartRequest, identity: Identity = Depends(current_identity)) -> CartResponse:
    snapshot = merge_guest_cart(identity.user_id, [item.model_dump() for item in body.items])
    return CartResponse(cart=CartSchema.from_snapshot(snapshot))


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("/checkout/{checkout_session_id}", response_model=CheckoutOrderResponse)
def get_checkout_order(checkout_session_id: str) -> CheckoutOrderResponse:
    """Success-page lookup. The order may not exist yet if the webhook is still in flight."""
    with get_database().unit_of_work() as session:
        order = find_order_for_checkout_session(session, checkout_session_id.strip())
        if order is None:
            return CheckoutOrderResponse(order=None, message=ORDER_PENDING_MESSAGE)
        return CheckoutOrderResponse(order=OrderSchema.from_order(order))


admin_order_router = APIRouter(
    prefix="/admin/orders",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@admin_order_router.get("", response_model=OrderListResponse)
def admin_list_orders(email: str | None = None) -> OrderListResponse:
    with get_database().unit_of_work() as session:
        orders = list_orders(session, email)
        return OrderListResponse(orders=[OrderSchema.from_order(order) for order in orders])
