"""Cart aggregate: one server-side cart per signed-in user.

``CartItem.product_id`` is a plain column rather than a foreign key. An
admin may delete a product that is sitting in someone's cart; the dangling
row is pruned (with a ``REMOVED_UNAVAILABLE`` adjustment) the next time the
cart is normalized.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database import Base, new_id


def _now() -> datetime:
    return datetime.now(UTC)


class Cart(Base):
    __tablename__ = "carts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    items: Mapped[list["CartItem"]] = relationship(
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by=lambda: [CartItem.created_at, CartItem.id],
    )

    def item_for_product(self, product_id: str) -> "CartItem | None":
        return next((item for item in self.items if item.product_id == product_id), None)

    def item_by_id(self, item_id: str) -> "CartItem | None":
        return next((item for item in self.items if item.id == item_id), None)

    def add_line(self, product_id: str, quantity: int) -> "CartItem":
        item = CartItem(product_id=product_id, quantity=quantity, created_at=_now())
        self.items.append(item)
        return item

    def remove_line(self, item: "CartItem") -> None:
        self.items.remove(item)


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
        CheckConstraint("quantity >= 0", name="ck_cart_items_quantity_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    cart_id: Mapped[str] = mapped_column(ForeignKey("carts.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[str] = mapped_column(String(36), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    cart: Mapped[Cart] = relationship(back_populates="items")

    def __repr__(self) -> str:
        return f"<CartItem {self.product_id} x{self.quantity}>"
