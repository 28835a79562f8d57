"""Integration tests for the checkout endpoint."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from ordering.cart.items import add_item
from payments.api import checkout_router
from shared.api import register_exception_handlers

HEADERS = {"X-User-Id": "user-1", "X-User-Email": "buyer@example.com"}


@pytest.fixture()
def client():
    app = FastAPI()
    app.include_router(checkout_router)
    register_exception_handlers(app)
    return TestClient(app)


class TestCheckoutEndpoint:
    def test_requires_authentication(self, client, fake_gateway):
        response = client.post("/checkout")

        assert response.status_code == 401

    def test_empty_cart(self, client, fake_gateway):
        response = client.post("/checkout", headers=HEADERS)

        assert response.status_code == 400
        assert response.json() == {"error": "Your cart is empty."}

    def test_returns_redirect_url(self, client, fake_gateway, make_product):
        product = make_product()
        add_item("user-1", product.id, 1)

        response = client.post("/checkout", headers={**HEADERS, "Origin": "https://shop.example.com"})

        assert response.status_code == 200
        assert response.json()["url"].startswith("https://checkout.fake.local/pay/")
        request = fake_gateway.calls[-1]["request"]
        assert request.success_url.startswith("https://shop.example.com/checkout/success")
        assert request.customer_email == "buyer@example.com"

    def test_gateway_failure(self, client, fake_gateway, make_product):
        fake_gateway.configure(should_succeed=False)
        product = make_product()
        add_item("user-1", product.id, 1)

        response = client.post("/checkout", headers=HEADERS)

        assert response.status_code == 502
        assert response.json() == {"error": "Checkout unavailable"}
