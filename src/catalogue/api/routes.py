"""FastAPI endpoints for the Catalogue domain."""

from fastapi import APIRouter, Depends

from catalogue.api.schemas import (
    CreateProductRequest,
    DeletedResponse,
    ProductEnvelope,
    ProductListResponse,
    ProductResponse,
    SetStockRequest,
    UpdateProductRequest,
)
from catalogue.product.browsing import get_published_product, list_all_products, list_published_products
from catalogue.product.creation import create_product
from catalogue.product.details import parse_product_details, parse_stock_quantity, update_product
from catalogue.product.product import ProductCategory
from catalogue.product.removal import delete_product
from catalogue.product.stock import set_stock_quantity
from identity.access import require_admin
from shared.database import get_database
from shared.exceptions import ValidationError

product_router = APIRouter(prefix="/products", tags=["products"])
admin_product_router = APIRouter(
    prefix="/admin/products",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _details(body):
    return parse_product_details(
        name=body.name,
        description=body.description,
        price=body.price,
        category=body.category,
        status=body.status,
        slug=body.slug,
        image_url=body.image_url,
    )


# --- Storefront endpoints ---


@product_router.get("", response_model=ProductListResponse)
def list_products(category: str | None = None) -> ProductListResponse:
    category_filter = None
    if category:
        try:
            category_filter = ProductCategory(category.upper())
        except ValueError:
            raise ValidationError({"category": ["Select a valid category."]}) from None

    with get_database().unit_of_work() as session:
        products = list_published_products(session, category_filter)
        return ProductListResponse(products=[ProductResponse.from_product(p) for p in products])


@product_router.get("/{slug}", response_model=ProductEnvelope)
def get_product(slug: str) -> ProductEnvelope:
    with get_database().unit_of_work() as session:
        product = get_published_product(session, slug)
        return ProductEnvelope(product=ProductResponse.from_product(product))


# --- Admin endpoints ---


@admin_product_router.get("", response_model=ProductListResponse)
def admin_list_products() -> ProductListResponse:
    with get_database().unit_of_work() as session:
        products = list_all_products(session)
        return ProductListResponse(products=[ProductResponse.from_product(p) for p in products])


@admin_product_router.post("", status_code=201, response_model=ProductEnvelope)
def admin_create_product(body: CreateProductRequest) -> ProductEnvelope:
    details = _details(body)
    stock_quantity = parse_stock_quantity(body.stock_quantity)

    with get_database().unit_of_work() as session:
        product = create_product(session, details, stock_quantity)
        return ProductEnvelope(product=ProductResponse.from_product(product))


@admin_product_router.patch("/{product_id}", response_model=ProductEnvelope)
def admin_update_product(product_id: str, body: UpdateProductRequest) -> ProductEnvelope:
    details = _details(body)

    with get_database().unit_of_work() as session:
        product = update_product(session, product_id, details)
        return ProductEnvelope(product=ProductResponse.from_product(product))


@admin_product_router.put("/{product_id}/stock", response_model=ProductEnvelope)
def admin_set_stock(product_id: str, body: SetStockRequest) -> ProductEnvelope:
    with get_database().unit_of_work() as session:
        product = set_stock_quantity(
            session,
            product_id,
            body.stock_quantity,
            expected_quantity=body.expected_stock_quantity,
        )
        return ProductEnvelope(product=ProductResponse.from_product(product))


@admin_product_router.delete("/{product_id}", response_model=DeletedResponse)
def admin_delete_product(product_id: str) -> DeletedResponse:
    with get_database().unit_of_work() as session:
        delete_product(session, product_id)
    return DeletedResponse()
