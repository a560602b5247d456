from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from modules.orders.context import build_order_context
from modules.products.models import Product

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def buyer():
    return User.objects.create_user(username="buyer", password="testpass123")


@pytest.fixture()
def other_buyer():
    return User.objects.create_user(username="other-buyer", password="testpass123")


@pytest.fixture()
def seller():
    return User.objects.create_user(username="seller", password="testpass123")


@pytest.fixture()
def other_seller():
    return User.objects.create_user(username="other-seller", password="testpass123")


@pytest.fixture()
def make_product(seller):
    """Factory: ``make_product(name, price="10.00", stock=10, owner=None)``."""

    def _make(name, price="10.00", stock=10, owner=None):
        return Product.objects.create(
            seller=owner or seller,
            name=name,
            price=Decimal(price),
            stock=stock,
        )

    return _make


@pytest.fixture()
def order_context():
    return build_order_context()


@pytest.fixture()
def coordinator(order_context):
    return order_context.coordinator
