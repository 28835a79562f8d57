"""Order aggregate: the durable record of a processor checkout session.

Orders are created by webhook handling, never by the storefront directly.
Status follows a small state machine; PAID and STOCK_FAILED are terminal.
PAYMENT_FAILED can still be superseded when a later success event for the
same checkout session arrives.
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database import Base, new_id
from shared.exceptions import InvalidStateError


class OrderStatus(Enum):
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAID = "PAID"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    STOCK_FAILED = "STOCK_FAILED"


_VALID_TRANSITIONS = {
    OrderStatus.PAYMENT_PENDING: {
        OrderStatus.PAID,
        OrderStatus.PAYMENT_FAILED,
        OrderStatus.STOCK_FAILED,
    },
    OrderStatus.PAYMENT_FAILED: {
        OrderStatus.PAID,  # Late success supersedes an async failure
        OrderStatus.STOCK_FAILED,
    },
    OrderStatus.PAID: set(),  # Terminal
    OrderStatus.STOCK_FAILED: set(),  # Terminal
}

TERMINAL_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.STOCK_FAILED})

# Statuses an upsert keeps as-is instead of resetting to PAYMENT_PENDING
SETTLED_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.PAYMENT_FAILED, OrderStatus.STOCK_FAILED})


def _now() -> datetime:
    return datetime.now(UTC)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    stripe_checkout_session_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(255))
    user_id: Mapped[str | None] = mapped_column(String(36), index=True)
    customer_email: Mapped[str | None] = mapped_column(String(254), index=True)
    currency: Mapped[str] = mapped_column(String(3), default="usd")
    amount_subtotal_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    amount_total_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, native_enum=False, length=20), default=OrderStatus.PAYMENT_PENDING, index=True
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _assert_can_transition(self, target_status: OrderStatus) -> None:
        """Validate that the current state allows transition to target."""
        if target_status not in _VALID_TRANSITIONS.get(self.status, set()):
            raise InvalidStateError(f"Cannot transition from {self.status.value} to {target_status.value}")

    def replace_items(self, line_items) -> None:
        """Swap the frozen line items for the processor's current view."""
        self.items.clear()
        for position, line_item in enumerate(line_items):
            self.items.append(
                OrderItem(
                    position=position,
                    product_id=line_item.product_id,
                    product_name=line_item.product_name,
                    unit_amount_in_cents=line_item.unit_amount_in_cents,
                    quantity=line_item.quantity,
                    line_total_in_cents=line_item.line_total_in_cents,
                )
            )

    def mark_paid(self, payment_intent_id: str | None = None, customer_email: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.PAID)
        self.status = OrderStatus.PAID
        self.paid_at = _now()
        self.stripe_payment_intent_id = payment_intent_id or self.stripe_payment_intent_id
        self.customer_email = customer_email or self.customer_email

    def mark_payment_failed(self, payment_intent_id: str | None = None, customer_email: str | None = None) -> None:
        if self.status == OrderStatus.PAYMENT_FAILED:
            return
        self._assert_can_transition(OrderStatus.PAYMENT_FAILED)
        self.status = OrderStatus.PAYMENT_FAILED
        self.stripe_payment_intent_id = payment_intent_id or self.stripe_payment_intent_id
        self.customer_email = customer_email or self.customer_email

    def mark_stock_failed(self, payment_intent_id: str | None = None, customer_email: str | None = None) -> None:
        self._assert_can_transition(OrderStatus.STOCK_FAILED)
        self.status = OrderStatus.STOCK_FAILED
        self.paid_at = None
        self.stripe_payment_intent_id = payment_intent_id or self.stripe_payment_intent_id
        self.customer_email = customer_email or self.customer_email

    def __repr__(self) -> str:
        return f"<Order {self.stripe_checkout_session_id} {self.status.value}>"


class OrderItem(Base):
    """Purchased line, frozen at payment time."""

    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), index=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    product_id: Mapped[str | None] = mapped_column(ForeignKey("products.id", ondelete="SET NULL"), index=True)
    product_name: Mapped[str] = mapped_column(String(255))
    unit_amount_in_cents: Mapped[int] = mapped_column(Integer)
    quantity: Mapped[int] = mapped_column(Integer)
    line_total_in_cents: Mapped[int] = mapped_column(Integer)

    order: Mapped[Order] = relationship(back_populates="items")
