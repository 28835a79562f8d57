"""Product aggregate: catalogue entry with live price and stock."""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from shared.database import Base, new_id


class ProductCategory(Enum):
    TOPS = "TOPS"
    BOTTOMS = "BOTTOMS"
    SHOES = "SHOES"
    ACCESSORIES = "ACCESSORIES"


class ProductStatus(Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


def _now() -> datetime:
    return datetime.now(UTC)


class Product(Base):
    """A sellable item.

    ``stock_quantity`` is only ever written by admin edits (absolute set)
    and by order finalization (conditional decrement). A PUBLISHED product
    with no stock stays visible in the storefront but cannot be bought.
    """

    __tablename__ = "products"
    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(220), unique=True, index=True)
    sku: Mapped[str | None] = mapped_column(String(20), unique=True)
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[ProductCategory] = mapped_column(SAEnum(ProductCategory, native_enum=False, length=20))
    price_in_cents: Mapped[int] = mapped_column(Integer)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0)
    image_url: Mapped[str | None] = mapped_column(String(500))
    status: Mapped[ProductStatus] = mapped_column(
        SAEnum(ProductStatus, native_enum=False, length=20), default=ProductStatus.DRAFT, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now)

    @property
    def is_published(self) -> bool:
        return self.status == ProductStatus.PUBLISHED

    @property
    def is_purchasable(self) -> bool:
        return self.is_published and self.stock_quantity > 0

    def __repr__(self) -> str:
        return f"<Product {self.slug} stock={self.stock_quantity}>"
