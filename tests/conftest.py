"""
Pytest fixtures and configuration for the Storefront API tests

An in-memory SQLite database replaces the application database and
the rates, payments and mailer connectors are replaced through
app.dependency_overrides.
"""
import itertools
from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.connectors.mailer import Mailer, get_mailer
from storefront.connectors.payments import PaymentsConnector, get_payments_connector
from storefront.connectors.rates import RatesConnector, get_rates_connector
from storefront.core.auth import create_access_token, hash_password
from storefront.core.config import settings
from storefront.core.database import Base, get_db, init_db, json_serializer
from storefront.core.rate_limit import rate_limiter
from storefront.main import app
from storefront.models import Brand, Category, Coupon, Product, User
from storefront.models.mixins import utcnow

# StaticPool keeps a single connection so every session sees the same in-memory database
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    json_serializer=json_serializer,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TAX_RATE = Decimal("0.1")
SHIPPING_COST = Decimal("5.00")
ESTIMATED_DELIVERY = "2030-01-10T12:00:00Z"


def rates_handler(request: httpx.Request) -> httpx.Response:
    """Fake tax and shipping APIs"""
    if request.url.path == "/tax/rates":
        return httpx.Response(200, json={"rate": float(TAX_RATE)})
    if request.url.path == "/shipping/rates":
        return httpx.Response(200, json={"rates": [{"amount": 12.5}, {"amount": float(SHIPPING_COST)}]})
    if request.url.path == "/shipping/delivery-estimate":
        return httpx.Response(200, json={"estimated_delivery": ESTIMATED_DELIVERY})
    return httpx.Response(404)


@pytest.fixture
def db():
    """
    Provides a session on a freshly created schema

    Scope: function (tables are dropped after each test)
    """
    init_db(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def rates():
    """Rates connector wired to the fake APIs: 10% tax, $5 cheapest shipping"""
    return RatesConnector(
        tax_api_url="http://rates.test/tax",
        tax_api_key="tax-key",
        shipping_api_url="http://rates.test/shipping",
        shipping_api_key="shipping-key",
        transport=httpx.MockTransport(rates_handler),
    )


@pytest.fixture
def mailer():
    return MagicMock(spec=Mailer)


@pytest.fixture
def payments():
    connector = MagicMock(spec=PaymentsConnector)
    connector.create_payment_intent.return_value = "pi_123_secret_456"
    return connector


@pytest.fixture
def client(db, rates, mailer, payments, monkeypatch):
    """
    TestClient bound to the test database and fake connectors

    Rate limiting is disabled; tests that exercise it re-enable it.
    """
    monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
    rate_limiter.reset()

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_rates_connector] = lambda: rates
    app.dependency_overrides[get_payments_connector] = lambda: payments
    app.dependency_overrides[get_mailer] = lambda: mailer

    yield TestClient(app)

    app.dependency_overrides.clear()
    rate_limiter.reset()


# ============================================================================
# Users
# ============================================================================

def create_user(db, email="jane@example.com", password="secret123", role="user", name="Jane Doe"):
    user = User(name=name, email=email, password_hash=hash_password(password), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def bearer(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture
def user(db):
    return create_user(db)


@pytest.fixture
def other_user(db):
    return create_user(db, email="john@example.com", name="John Roe")


@pytest.fixture
def admin(db):
    return create_user(db, email="admin@example.com", role="admin", name="Store Admin")


@pytest.fixture
def auth_headers(user):
    return bearer(user)


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


# ============================================================================
# Catalog
# ============================================================================

@pytest.fixture
def catalog(db):
    """
    Brand "Acme" and a two-level category tree:
    Electronics (root) > Phones
    """
    brand = Brand(name="Acme", slug="acme")
    root = Category(name="Electronics", slug="electronics", level=1)
    child = Category(name="Phones", slug="phones", level=2, parent=root)
    db.add_all([brand, root, child])
    db.commit()
    return SimpleNamespace(brand=brand, root=root, child=child)


@pytest.fixture
def make_product(db, catalog):
    """Factory for active products in the Phones category"""
    counter = itertools.count(1)

    def factory(**overrides):
        n = next(counter)
        values = {
            "name": f"Product {n}",
            "slug": f"product-{n}",
            "description": f"Description of product {n}",
            "brand_id": catalog.brand.id,
            "category_id": catalog.child.id,
            "price": Decimal("10.00"),
            "stock": 10,
            "sku": f"SKU-{n:03d}",
        }
        values.update(overrides)
        product = Product(**values)
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return factory


@pytest.fixture
def make_coupon(db):
    """Factory for coupons valid from yesterday to 30 days ahead"""

    def factory(**overrides):
        now = utcnow()
        values = {
            "code": "SAVE10",
            "type": "percentage",
            "value": Decimal("10"),
            "min_purchase": Decimal("0"),
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
            "per_user_limit": 1,
        }
        values.update(overrides)
        coupon = Coupon(**values)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return factory
