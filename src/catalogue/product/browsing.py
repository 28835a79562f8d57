"""Storefront and admin product listings."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from catalogue.product.product import Product, ProductCategory, ProductStatus
from shared.exceptions import ProductNotFoundError


def list_published_products(session: Session, category: ProductCategory | None = None) -> list[Product]:
    statement = select(Product).where(Product.status == ProductStatus.PUBLISHED)
    if category is not None:
        statement = statement.where(Product.category == category)
    return list(session.scalars(statement.order_by(Product.created_at.desc(), Product.id)))


def get_published_product(session: Session, slug: str) -> Product:
    product = session.scalar(
        select(Product).where(Product.slug == slug, Product.status == ProductStatus.PUBLISHED)
    )
    if product is None:
        raise ProductNotFoundError()
    return product


def list_all_products(session: Session) -> list[Product]:
    return list(session.scalars(select(Product).order_by(Product.created_at.desc(), Product.id)))
