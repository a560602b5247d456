"""Order-specific queries composed on top of ``IRepository``.

These are plain functions instead of methods on an order repository
subclass: each takes the generic repository it reads from and builds on
its ``query()``.

Listing queries annotate every order with:
- ``total_items``: number of order lines.
- ``total_amount``: sum of ``quantity * price`` over those lines.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Mapping

from django.db.models import Count, DecimalField, ExpressionWrapper, F, QuerySet, Sum
from django.db.models.functions import Coalesce

from modules.core.pagination import Pagination
from modules.core.repositories.interfaces import IRepository
from modules.orders.models import Order, OrderItem, OrderStatusHistory

_LINE_TOTAL = ExpressionWrapper(
    F("items__quantity") * F("items__price"),
    output_field=DecimalField(max_digits=14, decimal_places=2),
)


def _with_totals(queryset: QuerySet[Order]) -> QuerySet[Order]:
    return queryset.annotate(
        total_items=Count("items", distinct=True),
        total_amount=Coalesce(
            Sum(_LINE_TOTAL),
            Decimal("0.00"),
            output_field=DecimalField(max_digits=14, decimal_places=2),
        ),
    )


def _page(queryset: QuerySet[Order], pagination: Pagination) -> List[Order]:
    ordered = queryset.order_by("-created_at", "-id")
    return list(ordered[pagination.offset : pagination.stop])


def find_by_buyer(
    orders: IRepository[Order], buyer_id: Any, pagination: Pagination
) -> List[Order]:
    """Orders placed by *buyer_id*, newest first."""
    queryset = orders.query().filter(buyer_id=buyer_id).prefetch_related(None)
    return _page(_with_totals(queryset), pagination)


def find_by_seller(
    orders: IRepository[Order], seller_id: Any, pagination: Pagination
) -> List[Order]:
    """Orders containing at least one product sold by *seller_id*.

    The filter is applied before the annotation, so ``total_items`` and
    ``total_amount`` only cover this seller's lines of each order.
    """
    queryset = (
        orders.query()
        .prefetch_related(None)
        .filter(items__product__seller_id=seller_id)
    )
    return _page(_with_totals(queryset), pagination)


def find_items_by_order(items: IRepository[OrderItem], order_id: Any) -> List[OrderItem]:
    return list(items.query().filter(order_id=order_id).order_by("created_at", "id"))


def create_item(items: IRepository[OrderItem], fields: Mapping[str, Any]) -> OrderItem:
    """Insert one order line; lines are never updated afterwards."""
    return items.create(fields)


def seller_owns_item_in_order(
    items: IRepository[OrderItem], order_id: Any, seller_id: Any
) -> bool:
    return (
        items.query()
        .filter(order_id=order_id, product__seller_id=seller_id)
        .exists()
    )


def find_history_by_order(
    history: IRepository[OrderStatusHistory], order_id: Any
) -> List[OrderStatusHistory]:
    return list(history.query().filter(order_id=order_id).order_by("created_at", "id"))


def record_status_change(
    history: IRepository[OrderStatusHistory],
    order_id: Any,
    new_status: str,
    old_status: str | None = None,
    changed_by_id: Any = None,
    notes: str = "",
) -> OrderStatusHistory:
    """Append one audit record for a status change."""
    return history.create(
        {
            "order_id": order_id,
            "old_status": old_status,
            "new_status": new_status,
            "changed_by_id": changed_by_id,
            "notes": notes,
        }
    )
