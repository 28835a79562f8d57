"""Admin product details: input validation and edits."""

from dataclasses import dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from catalogue.product.product import Product, ProductCategory, ProductStatus
from catalogue.shared.pricing import to_cents
from catalogue.shared.slug import slugify
from shared.exceptions import ProductNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ProductDetails:
    """Validated admin input shared by product creation and editing."""

    name: str
    base_slug: str
    description: str
    category: ProductCategory
    price_in_cents: int
    status: ProductStatus
    image_url: str | None = None


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def parse_product_details(
    *,
    name,
    description,
    price,
    category,
    status=None,
    slug=None,
    image_url=None,
) -> ProductDetails:
    """Validate raw admin input. Anything other than DRAFT publishes the product."""
    name = _text(name)
    if not name:
        raise ValidationError({"name": ["Product name is required."]})

    description = _text(description)
    if not description:
        raise ValidationError({"description": ["Product description is required."]})

    price_in_cents = to_cents(price) if price not in (None, "") else None
    if price_in_cents is None or price_in_cents <= 0:
        raise ValidationError({"price": ["Enter a valid price greater than 0."]})

    try:
        product_category = ProductCategory(_text(category))
    except ValueError:
        raise ValidationError({"category": ["Select a valid category."]}) from None

    base_slug = slugify(_text(slug) or name)
    if not base_slug:
        raise ValidationError({"slug": ["Could not build a valid slug from this product name."]})

    product_status = ProductStatus.DRAFT if _text(status) == ProductStatus.DRAFT.value else ProductStatus.PUBLISHED

    return ProductDetails(
        name=name,
        base_slug=base_slug,
        description=description,
        category=product_category,
        price_in_cents=price_in_cents,
        status=product_status,
        image_url=_text(image_url) or None,
    )


def parse_stock_quantity(value) -> int:
    if isinstance(value, bool):
        raise ValidationError({"stock_quantity": ["Enter a valid stock quantity of 0 or greater."]})
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError({"stock_quantity": ["Enter a valid stock quantity of 0 or greater."]}) from None
    if not number.is_integer() or number < 0:
        raise ValidationError({"stock_quantity": ["Enter a valid stock quantity of 0 or greater."]})
    return int(number)


def unique_slug(session: Session, base_slug: str, product_id: str | None = None) -> str:
    """First free slug among ``base``, ``base-1``, ``base-2`` ... (ignoring ``product_id``)."""
    suffix = 0
    candidate = base_slug
    while True:
        existing_id = session.scalar(select(Product.id).where(Product.slug == candidate))
        if existing_id is None or existing_id == product_id:
            return candidate
        suffix += 1
        candidate = f"{base_slug}-{suffix}"


def get_product(session: Session, product_id: str) -> Product:
    product = session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError()
    return product


def update_product(session: Session, product_id: str, details: ProductDetails) -> Product:
    """Apply edited details. Stock is managed separately."""
    product = get_product(session, product_id)

    product.name = details.name
    product.slug = unique_slug(session, details.base_slug, product_id=product.id)
    product.description = details.description
    product.category = details.category
    product.price_in_cents = details.price_in_cents
    product.status = details.status
    if details.image_url:
        product.image_url = details.image_url
    session.flush()

    logger.info("product_updated", product_id=product.id, slug=product.slug, status=product.status.value)
    return product
