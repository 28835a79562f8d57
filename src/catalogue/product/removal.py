"""Admin product deletion.

Cart rows pointing at the product are pruned lazily on the owner's next
cart read; order items keep their frozen name and price.
"""

import structlog
from sqlalchemy.orm import Session

from catalogue.product.details import get_product

logger = structlog.get_logger(__name__)


def delete_product(session: Session, product_id: str) -> None:
    product = get_product(session, product_id)
    session.delete(product)
    session.flush()
    logger.info("product_deleted", product_id=product_id, slug=product.slug)
