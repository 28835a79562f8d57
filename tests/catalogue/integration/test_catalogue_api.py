"""Integration tests for the catalogue endpoints."""

import pytest
from catalogue.api import admin_product_router, product_router
from catalogue.product.product import Product, ProductStatus
from fastapi import FastAPI
from fastapi.testclient import TestClient
from shared.api import register_exception_handlers
from shared.database import get_database

ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Email": "admin@example.com"}
SHOPPER_HEADERS = {"X-User-Id": "user-1", "X-User-Email": "shopper@example.com"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(product_router)
    app.include_router(admin_product_router)
    register_exception_handlers(app)
    return TestClient(app)


def _payload(**overrides):
    payload = {
        "name": "Classic Black Tee",
        "description": "Heavyweight cotton tee.",
        "price": "24.00",
        "category": "TOPS",
        "stock_quantity": 10,
    }
    payload.update(overrides)
    return payload


class TestStorefrontEndpoints:
    def test_lists_published_products_only(self, client, make_product):
        published = make_product(name="Tee")
        make_product(name="Hidden", status=ProductStatus.DRAFT)

        response = client.get("/products")

        assert response.status_code == 200
        assert [p["id"] for p in response.json()["products"]] == [published.id]

    def test_filters_by_category(self, client, make_product):
        from catalogue.product.product import ProductCategory

        make_product(name="Tee")
        shoes = make_product(name="Runner", category=ProductCategory.SHOES)

        response = client.get("/products", params={"category": "shoes"})

        assert [p["id"] for p in response.json()["products"]] == [shoes.id]

    def test_unknown_category_is_rejected(self, client):
        response = client.get("/products", params={"category": "HATS"})

        assert response.status_code == 400
        assert response.json()["error"] == "Select a valid category."

    def test_get_by_slug(self, client, make_product):
        product = make_product(stock_quantity=0)

        response = client.get(f"/products/{product.slug}")

        assert response.status_code == 200
        body = response.json()["product"]
        assert body["id"] == product.id
        assert body["is_purchasable"] is False

    def test_draft_product_is_not_found(self, client, make_product):
        product = make_product(status=ProductStatus.DRAFT)

        response = client.get(f"/products/{product.slug}")

        assert response.status_code == 404
        assert response.json() == {"error": "Product not found."}


class TestAdminAccess:
    def test_requires_authentication(self, client):
        response = client.get("/admin/products")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized."}

    def test_requires_admin_email(self, client):
        response = client.get("/admin/products", headers=SHOPPER_HEADERS)

        assert response.status_code == 403
        assert response.json() == {"error": "Forbidden."}

    def test_admin_email_match_is_case_insensitive(self, client):
        headers = {"X-User-Id": "admin-1", "X-User-Email": "Admin@Example.COM"}

        response = client.get("/admin/products", headers=headers)

        assert response.status_code == 200


class TestAdminProductEndpoints:
    def test_create_product(self, client):
        response = client.post("/admin/products", json=_payload(), headers=ADMIN_HEADERS)

        assert response.status_code == 201
        body = response.json()["product"]
        assert body["slug"] == "classic-black-tee"
        assert body["price_in_cents"] == 2400
        assert body["stock_quantity"] == 10
        assert body["status"] == "PUBLISHED"
        assert len(body["sku"]) == 6

    def test_create_rejects_invalid_price(self, client):
        response = client.post("/admin/products", json=_payload(price="0"), headers=ADMIN_HEADERS)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Enter a valid price greater than 0.",
            "details": {"price": ["Enter a valid price greater than 0."]},
        }

    def test_create_rejects_negative_stock(self, client):
        response = client.post("/admin/products", json=_payload(stock_quantity=-1), headers=ADMIN_HEADERS)

        assert response.status_code == 400
        assert response.json()["error"] == "Enter a valid stock quantity of 0 or greater."

    def test_admin_list_includes_drafts(self, client, make_product):
        make_product(status=ProductStatus.DRAFT)
        make_product()

        response = client.get("/admin/products", headers=ADMIN_HEADERS)

        assert len(response.json()["products"]) == 2

    def test_update_product(self, client, make_product):
        product = make_product(stock_quantity=4)

        response = client.patch(
            f"/admin/products/{product.id}",
            json=_payload(name="Renamed Tee", status="DRAFT"),
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 200
        body = response.json()["product"]
        assert body["slug"] == "renamed-tee"
        assert body["status"] == "DRAFT"
        assert body["stock_quantity"] == 4

    def test_set_stock(self, client, make_product, stock_of):
        product = make_product(stock_quantity=4)

        response = client.put(
            f"/admin/products/{product.id}/stock",
            json={"stock_quantity": 9, "expected_stock_quantity": 4},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 200
        assert stock_of(product.id) == 9

    def test_set_stock_conflict(self, client, make_product, set_stock, stock_of):
        product = make_product(stock_quantity=4)
        set_stock(product.id, 1)

        response = client.put(
            f"/admin/products/{product.id}/stock",
            json={"stock_quantity": 9, "expected_stock_quantity": 4},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 409
        assert stock_of(product.id) == 1

    def test_set_stock_requires_expected_quantity(self, client, make_product, stock_of):
        product = make_product(stock_quantity=4)

        response = client.put(
            f"/admin/products/{product.id}/stock",
            json={"stock_quantity": 9},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 422
        assert stock_of(product.id) == 4

    def test_delete_product(self, client, make_product):
        product = make_product()

        response = client.delete(f"/admin/products/{product.id}", headers=ADMIN_HEADERS)

        assert response.status_code == 200
        assert response.json() == {"success": True}
        with get_database().unit_of_work() as session:
            assert session.get(Product, product.id) is None

    def test_delete_missing_product(self, client):
        response = client.delete("/admin/products/missing", headers=ADMIN_HEADERS)

        assert response.status_code == 404
