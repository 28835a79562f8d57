import os
from itertools import count
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Point the settings at an in-memory database and the fake payment gateway.
    """
    os.environ["SHOPFRONT_ENV"] = session.config.option.env
    os.environ["SHOPFRONT_DATABASE_URL"] = "sqlite://"
    os.environ["SHOPFRONT_PAYMENT_GATEWAY"] = "fake"
    os.environ["SHOPFRONT_ADMIN_EMAILS"] = "admin@example.com"
    os.environ.pop("SHOPFRONT_LOG_DIR", None)

    from shared.config import get_settings

    get_settings.cache_clear()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    from shared.database import Database, reset_database, set_database
    from shared.utils.db import drop_db, setup_db

    database = Database("sqlite://")
    set_database(database)
    setup_db(database.engine)

    yield

    drop_db(database.engine)
    reset_database()


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from identity.provider import reset_identity_provider
    from payments.gateway import reset_gateway
    from shared.config import get_settings
    from shared.utils.db import reset_data

    reset_data()
    reset_gateway()
    reset_identity_provider()
    get_settings.cache_clear()


@pytest.fixture
def settings_override(monkeypatch):
    """Set SHOPFRONT_* variables for one test and rebuild the settings."""
    from shared.config import get_settings

    def _override(**values):
        for key, value in values.items():
            monkeypatch.setenv(f"SHOPFRONT_{key.upper()}", str(value))
        get_settings.cache_clear()
        return get_settings()

    return _override


@pytest.fixture
def fake_gateway():
    from payments.gateway import set_gateway
    from payments.gateway.fake_adapter import FakeGateway

    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


_sequence = count(1)


@pytest.fixture
def make_product():
    from catalogue.product.product import Product, ProductCategory, ProductStatus
    from shared.database import get_database

    def _make(
        name="Classic Tee",
        price_in_cents=2500,
        stock_quantity=5,
        status=ProductStatus.PUBLISHED,
        category=ProductCategory.TOPS,
        image_url=None,
    ):
        number = next(_sequence)
        with get_database().unit_of_work() as session:
            product = Product(
                name=name,
                slug=f"product-{number}",
                sku=f"{100000 + number}",
                description=f"{name} description",
                category=category,
                price_in_cents=price_in_cents,
                stock_quantity=stock_quantity,
                image_url=image_url,
                status=status,
            )
            session.add(product)
        return product

    return _make


@pytest.fixture
def make_user():
    from identity.user import User
    from shared.database import get_database

    def _make(email=None, name=None):
        with get_database().unit_of_work() as session:
            user = User(email=email or f"shopper{next(_sequence)}@example.com", name=name)
            session.add(user)
        return user

    return _make


@pytest.fixture
def stock_of():
    from catalogue.product.product import Product
    from shared.database import get_database

    def _stock(product_id):
        with get_database().unit_of_work() as session:
            return session.get(Product, product_id).stock_quantity

    return _stock


@pytest.fixture
def set_stock():
    from catalogue.product.product import Product
    from shared.database import get_database

    def _set(product_id, quantity):
        with get_database().unit_of_work() as session:
            session.get(Product, product_id).stock_quantity = quantity

    return _set
