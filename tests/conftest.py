"""Pytest fixtures for storefront tests."""

from decimal import Decimal

import pytest

from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db
from storefront.models import Product, TransactionType, User, UserRole
from storefront.services.cart_service import ServerCart
from storefront.services.wallet_service import apply_delta

PASSWORD = "secret123"

SHIPPING_ADDRESS = {
    "name": "Alice Buyer",
    "address": "1 Market Street",
    "city": "Springfield",
    "postalCode": "12345",
    "phone": "555-0100",
}


def make_user(app, email, balance="0", role=UserRole.USER, name=None):
    """Create a user; a starting balance is booked as a ledger top-up."""
    with app.app_context():
        user = User(name=name or email.split("@")[0], email=email, role=role)
        user.set_password(PASSWORD)
        db.session.add(user)
        db.session.flush()
        if Decimal(balance) > 0:
            apply_delta(
                user.id, Decimal(balance), TransactionType.TOPUP,
                "Opening balance")
        db.session.commit()
        return user.id


def make_product(
        app, name="Widget", price="25.00", stock=10,
        category="Gadgets", is_active=True, description="A useful thing"):
    with app.app_context():
        product = Product(
            name=name,
            description=description,
            price=Decimal(price),
            category=category,
            stock=stock,
            is_active=is_active,
        )
        db.session.add(product)
        db.session.commit()
        return product.id


def fill_cart(app, user_id, *lines):
    """Put ``(product_id, quantity)`` lines in a user's server cart."""
    with app.app_context():
        cart = ServerCart(user_id)
        for product_id, quantity in lines:
            cart.add(product_id, quantity)
        db.session.commit()


def login(client, email):
    response = client.post(
        "/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200, response.get_json()
    return client


def build_app(config_class):
    app = create_app(config_class)
    with app.app_context():
        db.create_all()
    return app


@pytest.fixture
def app():
    app = build_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def file_app(tmp_path):
    """App on a file-backed SQLite database, for multi-connection tests."""
    config = type("FileConfig", (TestConfig,), {
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'store.db'}",
    })
    app = build_app(config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_id(app):
    return make_user(app, "alice@example.com", balance="100.00")


@pytest.fixture
def user_client(app, user_id):
    return login(app.test_client(), "alice@example.com")


@pytest.fixture
def admin_id(app):
    return make_user(
        app, "admin@example.com", role=UserRole.ADMIN, name="Administrator")


@pytest.fixture
def admin_client(app, admin_id):
    return login(app.test_client(), "admin@example.com")


@pytest.fixture
def product_id(app):
    return make_product(app)
