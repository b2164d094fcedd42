from datetime import timedelta
from decimal import Decimal

import pytest

from urbanpos import create_app
from urbanpos.config import TestConfig
from urbanpos.extensions import db
from urbanpos.model import Category, Coupon, Product
from urbanpos.pos.coupons import utcnow
from urbanpos.pos.currency import CurrencyContext
from urbanpos.pos.session import CashierSession


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, key):
    resp = client.post("/api/auth/login", json={"key": key})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['data']['token']}"}


@pytest.fixture
def master_headers(client):
    return login(client, TestConfig.MASTER_ACCESS_KEY)


@pytest.fixture
def catalog(app):
    """Three sellable products and one that is sold out."""
    category = Category(name="General")
    products = {
        "widget": Product(name="Widget", price=Decimal("10.00"), stock_quantity=5, category=category),
        "gadget": Product(name="Gadget", price=Decimal("5.00"), stock_quantity=10, category=category),
        "last_one": Product(name="Last One", price=Decimal("3.00"), stock_quantity=1, category=category),
        "sold_out": Product(name="Sold Out", price=Decimal("2.00"), stock_quantity=0, category=category),
    }
    db.session.add(category)
    db.session.add_all(products.values())
    db.session.commit()
    return products


@pytest.fixture
def make_coupon(app):
    def _make(code="SAVE20", discount_type="percentage", value="20", usage_limit=10,
              usage_count=0, is_active=True, expires_in=timedelta(days=7)):
        coupon = Coupon(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(value),
            usage_limit=usage_limit,
            usage_count=usage_count,
            is_active=is_active,
            expiration_date=utcnow() + expires_in,
        )
        db.session.add(coupon)
        db.session.commit()
        return coupon
    return _make


@pytest.fixture
def cashier():
    return CashierSession(cashier_id="key:1", cashier_name="Alice", permissions=frozenset({"pos"}))


@pytest.fixture
def usd():
    return CurrencyContext(base="USD", display="USD")
