"""Unit tests for order models."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from modules.orders.constants import OrderStatus
from modules.orders.exceptions import InvalidOrderRequest
from modules.orders.models import Order, OrderItem

pytestmark = pytest.mark.unit


@pytest.fixture()
def order(buyer):
    return Order.objects.create(buyer=buyer, shipping_address="Rua A, 100")


class TestOrder:
    def test_defaults_to_pending(self, order):
        assert order.status == OrderStatus.PENDING
        assert not order.is_terminal

    def test_ids_are_uuid7(self, order):
        assert order.id.version == 7

    @pytest.mark.parametrize("status", [OrderStatus.DELIVERED, OrderStatus.CANCELLED])
    def test_terminal_statuses(self, buyer, status):
        order = Order.objects.create(
            buyer=buyer, shipping_address="Rua A", status=status
        )
        assert order.is_terminal

    def test_total_sums_item_subtotals(self, order, make_product):
        keyboard = make_product("Keyboard", price="20.00")
        mouse = make_product("Mouse", price="5.50")
        OrderItem.objects.create(order=order, product=keyboard, quantity=3, price=keyboard.price)
        OrderItem.objects.create(order=order, product=mouse, quantity=2, price=mouse.price)

        assert order.total == Decimal("71.00")

    def test_total_of_empty_order_is_zero(self, order):
        assert order.total == Decimal("0.00")


class TestOrderItem:
    def test_subtotal(self, order, make_product):
        product = make_product("Keyboard", price="20.00")
        item = OrderItem.objects.create(
            order=order, product=product, quantity=3, price=Decimal("20.00")
        )
        assert item.subtotal == Decimal("60.00")

    def test_items_are_immutable(self, order, make_product):
        product = make_product("Keyboard", price="20.00")
        item = OrderItem.objects.create(
            order=order, product=product, quantity=1, price=Decimal("20.00")
        )

        item.quantity = 5
        with pytest.raises(InvalidOrderRequest, match="immutable"):
            item.save()

        item.refresh_from_db()
        assert item.quantity == 1

    def test_rejects_zero_quantity(self, order, make_product):
        product = make_product("Keyboard")
        with pytest.raises(InvalidOrderRequest, match="at least 1"):
            OrderItem.objects.create(
                order=order, product=product, quantity=0, price=Decimal("10.00")
            )

    def test_quantity_constraint_enforced_by_database(self, order, make_product):
        product = make_product("Keyboard")
        with pytest.raises(IntegrityError), transaction.atomic():
            OrderItem.objects.bulk_create(
                [OrderItem(order=order, product=product, quantity=0, price=Decimal("1.00"))]
            )
