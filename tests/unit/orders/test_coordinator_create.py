"""Unit tests for ``OrderTransactionCoordinator.create_order``.

Covers:
- Stock reservation and price capture on success.
- Initial status and creation history record.
- Validation failures (empty items, bad quantity, blank address,
  unknown product, insufficient stock) leave no trace.
- All-or-nothing behaviour when a later item fails.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.core.exceptions import InsufficientStock
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CreateOrderItemDTO
from modules.orders.exceptions import InvalidOrderRequest
from modules.orders.models import Order, OrderItem, OrderStatusHistory
from modules.products.exceptions import ProductNotFound

pytestmark = pytest.mark.unit


def _line(product, quantity):
    return {"product_id": product.id, "quantity": quantity}


class TestCreateOrderSuccess:
    def test_reserves_stock_and_captures_price(self, coordinator, buyer, make_product):
        product = make_product("Keyboard", price="20.00", stock=10)

        order = coordinator.create_order(buyer.id, "Rua A, 100", [_line(product, 3)])

        product.refresh_from_db()
        assert product.stock == 7
        assert order.status == OrderStatus.PENDING
        assert order.buyer_id == buyer.id
        assert order.shipping_address == "Rua A, 100"
        (item,) = order.items.all()
        assert item.product_id == product.id
        assert item.quantity == 3
        assert item.price == Decimal("20.00")
        assert order.total == Decimal("60.00")

    def test_records_creation_history(self, coordinator, buyer, make_product):
        product = make_product("Keyboard")

        order = coordinator.create_order(buyer.id, "Rua A", [_line(product, 1)])

        (record,) = OrderStatusHistory.objects.filter(order=order)
        assert record.old_status is None
        assert record.new_status == OrderStatus.PENDING
        assert record.changed_by_id == buyer.id
        assert record.notes == "Order created"

    def test_multiple_items(self, coordinator, buyer, make_product):
        keyboard = make_product("Keyboard", price="20.00", stock=10)
        mouse = make_product("Mouse", price="5.50", stock=4)

        order = coordinator.create_order(
            buyer.id, "Rua A", [_line(keyboard, 2), _line(mouse, 4)]
        )

        keyboard.refresh_from_db()
        mouse.refresh_from_db()
        assert keyboard.stock == 8
        assert mouse.stock == 0
        assert order.items.count() == 2
        assert order.total == Decimal("62.00")

    def test_accepts_item_dtos(self, coordinator, buyer, make_product):
        product = make_product("Keyboard", stock=5)

        order = coordinator.create_order(
            buyer.id,
            "Rua A",
            [CreateOrderItemDTO(product_id=product.id, quantity=5)],
        )

        product.refresh_from_db()
        assert product.stock == 0
        assert order.items.get().quantity == 5

    def test_later_price_change_does_not_affect_order(
        self, coordinator, buyer, make_product
    ):
        product = make_product("Keyboard", price="20.00")
        order = coordinator.create_order(buyer.id, "Rua A", [_line(product, 2)])

        product.price = Decimal("99.99")
        product.save()

        reloaded = coordinator.get_order(order.id)
        assert reloaded.items.get().price == Decimal("20.00")
        assert reloaded.total == Decimal("40.00")


class TestCreateOrderValidation:
    def test_empty_items(self, coordinator, buyer):
        with pytest.raises(InvalidOrderRequest, match="at least one item"):
            coordinator.create_order(buyer.id, "Rua A", [])
        assert Order.objects.count() == 0

    def test_none_items(self, coordinator, buyer):
        with pytest.raises(InvalidOrderRequest):
            coordinator.create_order(buyer.id, "Rua A", None)

    def test_non_iterable_items(self, coordinator, buyer):
        with pytest.raises(InvalidOrderRequest, match="must be a list"):
            coordinator.create_order(buyer.id, "Rua A", 5)
        assert Order.objects.count() == 0

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity(self, coordinator, buyer, make_product, quantity):
        product = make_product("Keyboard", stock=10)
        with pytest.raises(InvalidOrderRequest, match="Quantity must be at least 1"):
            coordinator.create_order(buyer.id, "Rua A", [_line(product, quantity)])
        product.refresh_from_db()
        assert product.stock == 10

    def test_blank_address(self, coordinator, buyer, make_product):
        product = make_product("Keyboard")
        with pytest.raises(InvalidOrderRequest, match="Shipping address"):
            coordinator.create_order(buyer.id, "  ", [_line(product, 1)])

    def test_duplicate_products(self, coordinator, buyer, make_product):
        product = make_product("Keyboard")
        with pytest.raises(InvalidOrderRequest, match="Duplicate"):
            coordinator.create_order(
                buyer.id, "Rua A", [_line(product, 1), _line(product, 2)]
            )

    def test_unknown_product(self, coordinator, buyer):
        with pytest.raises(ProductNotFound):
            coordinator.create_order(
                buyer.id, "Rua A", [{"product_id": uuid4(), "quantity": 1}]
            )
        assert Order.objects.count() == 0

    def test_insufficient_stock_names_product(self, coordinator, buyer, make_product):
        product = make_product("Keyboard", stock=2)

        with pytest.raises(InsufficientStock) as excinfo:
            coordinator.create_order(buyer.id, "Rua A", [_line(product, 3)])

        assert "Keyboard" in str(excinfo.value)
        assert excinfo.value.requested == 3
        assert excinfo.value.available == 2
        product.refresh_from_db()
        assert product.stock == 2
        assert Order.objects.count() == 0


class TestCreateOrderAtomicity:
    def test_failure_on_later_item_leaves_no_trace(
        self, coordinator, buyer, make_product
    ):
        plenty = make_product("Keyboard", stock=10)
        scarce = make_product("Mouse", stock=1)

        with pytest.raises(InsufficientStock, match="Mouse"):
            coordinator.create_order(
                buyer.id, "Rua A", [_line(plenty, 5), _line(scarce, 2)]
            )

        plenty.refresh_from_db()
        scarce.refresh_from_db()
        assert plenty.stock == 10
        assert scarce.stock == 1
        assert Order.objects.count() == 0
        assert OrderItem.objects.count() == 0
        assert OrderStatusHistory.objects.count() == 0

    def test_unknown_product_after_valid_one_leaves_no_trace(
        self, coordinator, buyer, make_product
    ):
        product = make_product("Keyboard", stock=10)

        with pytest.raises(ProductNotFound):
            coordinator.create_order(
                buyer.id,
                "Rua A",
                [_line(product, 1), {"product_id": uuid4(), "quantity": 1}],
            )

        product.refresh_from_db()
        assert product.stock == 10
        assert Order.objects.count() == 0

    def test_sequential_orders_cannot_oversell(self, coordinator, buyer, make_product):
        product = make_product("Keyboard", stock=5)

        coordinator.create_order(buyer.id, "Rua A", [_line(product, 3)])
        with pytest.raises(InsufficientStock):
            coordinator.create_order(buyer.id, "Rua A", [_line(product, 3)])

        product.refresh_from_db()
        assert product.stock == 2
        assert Order.objects.count() == 1
