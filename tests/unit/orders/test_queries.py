"""Unit tests for order listing and look-up queries.

Covers:
- ``get_order`` / ``list_by_buyer`` / ``list_by_seller``.
- Newest-first ordering and limit/offset pagination.
- Seller-scoped totals.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from modules.core.pagination import Pagination
from modules.orders.exceptions import OrderNotFound

pytestmark = pytest.mark.unit


@pytest.fixture()
def keyboard(make_product, seller):
    return make_product("Keyboard", price="20.00", stock=100, owner=seller)


@pytest.fixture()
def lamp(make_product, other_seller):
    return make_product("Lamp", price="7.50", stock=100, owner=other_seller)


def _order(coordinator, buyer, *lines):
    return coordinator.create_order(
        buyer.id,
        "Rua A",
        [{"product_id": product.id, "quantity": quantity} for product, quantity in lines],
    )


class TestGetOrder:
    def test_returns_order_with_items(self, coordinator, buyer, keyboard):
        created = _order(coordinator, buyer, (keyboard, 2))

        order = coordinator.get_order(created.id)

        assert order.id == created.id
        assert [item.quantity for item in order.items.all()] == [2]

    def test_unknown_order(self, coordinator):
        with pytest.raises(OrderNotFound):
            coordinator.get_order(uuid4())

    def test_malformed_id(self, coordinator):
        with pytest.raises(OrderNotFound):
            coordinator.get_order("not-a-uuid")

    def test_history_of_unknown_order(self, coordinator):
        with pytest.raises(OrderNotFound):
            coordinator.get_status_history(uuid4())


class TestListByBuyer:
    def test_only_the_buyers_orders_newest_first(
        self, coordinator, buyer, other_buyer, keyboard
    ):
        first = _order(coordinator, buyer, (keyboard, 1))
        _order(coordinator, other_buyer, (keyboard, 1))
        second = _order(coordinator, buyer, (keyboard, 2))

        orders = coordinator.list_by_buyer(buyer.id)

        assert [o.id for o in orders] == [second.id, first.id]

    def test_annotates_totals(self, coordinator, buyer, keyboard, lamp):
        _order(coordinator, buyer, (keyboard, 2), (lamp, 2))

        (order,) = coordinator.list_by_buyer(buyer.id)

        assert order.total_items == 2
        assert order.total_amount == Decimal("55.00")

    def test_pagination(self, coordinator, buyer, keyboard):
        created = [_order(coordinator, buyer, (keyboard, 1)) for _ in range(5)]
        newest_first = [o.id for o in reversed(created)]

        page = coordinator.list_by_buyer(buyer.id, Pagination(limit=2, offset=1))

        assert [o.id for o in page] == newest_first[1:3]

    def test_default_page_size(self, coordinator, buyer, keyboard, settings):
        settings.ORDERS_DEFAULT_PAGE_SIZE = 3
        for _ in range(4):
            _order(coordinator, buyer, (keyboard, 1))

        assert len(coordinator.list_by_buyer(buyer.id)) == 3

    def test_no_orders(self, coordinator, buyer):
        assert coordinator.list_by_buyer(buyer.id) == []


class TestListBySeller:
    def test_orders_containing_the_sellers_products(
        self, coordinator, buyer, other_buyer, seller, keyboard, lamp
    ):
        mixed = _order(coordinator, buyer, (keyboard, 1), (lamp, 1))
        _order(coordinator, buyer, (lamp, 3))
        mine = _order(coordinator, other_buyer, (keyboard, 2))

        orders = coordinator.list_by_seller(seller.id)

        assert [o.id for o in orders] == [mine.id, mixed.id]

    def test_totals_cover_only_the_sellers_lines(
        self, coordinator, buyer, seller, other_seller, keyboard, lamp
    ):
        _order(coordinator, buyer, (keyboard, 2), (lamp, 4))

        (for_seller,) = coordinator.list_by_seller(seller.id)
        (for_other,) = coordinator.list_by_seller(other_seller.id)

        assert for_seller.total_items == 1
        assert for_seller.total_amount == Decimal("40.00")
        assert for_other.total_items == 1
        assert for_other.total_amount == Decimal("30.00")

    def test_pagination(self, coordinator, buyer, seller, keyboard):
        created = [_order(coordinator, buyer, (keyboard, 1)) for _ in range(3)]

        page = coordinator.list_by_seller(seller.id, Pagination(limit=1, offset=2))

        assert [o.id for o in page] == [created[0].id]


class TestPagination:
    def test_defaults_from_settings(self, settings):
        settings.ORDERS_DEFAULT_PAGE_SIZE = 7
        page = Pagination()
        assert page.limit == 7
        assert page.offset == 0
        assert page.stop == 7

    def test_limit_above_maximum(self, settings):
        settings.ORDERS_MAX_PAGE_SIZE = 50
        with pytest.raises(ValidationError, match="at most 50"):
            Pagination(limit=51)

    @pytest.mark.parametrize("kwargs", [{"limit": 0}, {"offset": -1}])
    def test_rejects_negative_values(self, kwargs):
        with pytest.raises(ValidationError):
            Pagination(**kwargs)
