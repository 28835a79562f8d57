"""Product creation with unique slug and generated SKU."""

import random

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from catalogue.product.details import ProductDetails, unique_slug
from catalogue.product.product import Product
from shared.exceptions import InvalidStateError

logger = structlog.get_logger(__name__)

MAX_SKU_GENERATION_ATTEMPTS = 25


class SkuGenerationError(InvalidStateError):
    default_message = "Unable to generate a unique SKU."


def generate_sku() -> str:
    """Random six-digit SKU."""
    return str(random.randint(100000, 999999))


def assign_sku(session: Session, product: Product) -> str:
    """Give ``product`` a SKU, retrying on collision.

    Each attempt runs in a savepoint so a unique violation only rolls back
    that attempt.
    """
    for attempt in range(MAX_SKU_GENERATION_ATTEMPTS):
        sku = generate_sku()
        try:
            with session.begin_nested():
                product.sku = sku
                session.flush()
        except IntegrityError:
            logger.debug("sku_collision", product_id=product.id, attempt=attempt + 1)
            continue
        return sku

    raise SkuGenerationError()


def create_product(session: Session, details: ProductDetails, stock_quantity: int) -> Product:
    product = Product(
        name=details.name,
        slug=unique_slug(session, details.base_slug),
        description=details.description,
        category=details.category,
        price_in_cents=details.price_in_cents,
        stock_quantity=stock_quantity,
        image_url=details.image_url,
        status=details.status,
    )
    session.add(product)
    session.flush()

    assign_sku(session, product)

    logger.info(
        "product_created",
        product_id=product.id,
        slug=product.slug,
        sku=product.sku,
        status=product.status.value,
    )
    return product
