"""Pydantic request/response schemas for the Catalogue API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# --- Product Request Schemas ---


class ProductDetailsRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Classic Black Tee",
                    "slug": "classic-black-tee",
                    "description": "Heavyweight cotton crew-neck tee.",
                    "price": "24.00",
                    "category": "TOPS",
                    "status": "PUBLISHED",
                    "image_url": "https://cdn.example.com/products/classic-black-tee.jpg",
                }
            ]
        }
    }

    name: str | None = None
    slug: str | None = Field(None, max_length=200)
    description: str | None = None
    price: str | float | None = None
    category: str | None = None
    status: str | None = None
    image_url: str | None = Field(None, max_length=500)


class CreateProductRequest(ProductDetailsRequest):
    stock_quantity: str | int | None = None


class UpdateProductRequest(ProductDetailsRequest):
    pass


class SetStockRequest(BaseModel):
    stock_quantity: int = Field(..., ge=0)
    expected_stock_quantity: int = Field(..., ge=0)


# --- Product Response Schemas ---


class ProductResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    sku: str | None = None
    description: str
    category: str
    price_in_cents: int
    stock_quantity: int
    image_url: str | None = None
    status: str
    is_purchasable: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_product(cls, product) -> ProductResponse:
        return cls(
            id=product.id,
            name=product.name,
            slug=product.slug,
            sku=product.sku,
            description=product.description,
            category=product.category.value,
            price_in_cents=product.price_in_cents,
            stock_quantity=product.stock_quantity,
            image_url=product.image_url,
            status=product.status.value,
            is_purchasable=product.is_purchasable,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class ProductEnvelope(BaseModel):
    product: ProductResponse


class ProductListResponse(BaseModel):
    products: list[ProductResponse]


class DeletedResponse(BaseModel):
    success: bool = True
