"""Admin stock edits.

Admin writes set an absolute quantity as a compare-and-set against the
stock the admin last saw, so a concurrent order finalization is never
silently overwritten.
"""

import structlog
from sqlalchemy import update
from sqlalchemy.orm import Session

from catalogue.product.details import get_product
from catalogue.product.product import Product
from shared.exceptions import StockConflictError, ValidationError

logger = structlog.get_logger(__name__)


def set_stock_quantity(session: Session, product_id: str, quantity: int, expected_quantity: int) -> Product:
    if quantity < 0:
        raise ValidationError({"stock_quantity": ["Enter a valid stock quantity of 0 or greater."]})

    product = get_product(session, product_id)

    result = session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock_quantity == expected_quantity)
        .values(stock_quantity=quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(
            "stock_update_conflict",
            product_id=product_id,
            expected_quantity=expected_quantity,
        )
        raise StockConflictError()

    session.refresh(product)
    logger.info("stock_set", product_id=product_id, stock_quantity=quantity)
    return product
