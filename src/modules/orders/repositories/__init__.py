"""Order repositories package.

Orders, items and history share the generic ``DjangoRepository``; the
order-specific look-ups are the free functions in ``queries``.
"""

from modules.core.repositories.django_repository import DjangoRepository
from modules.orders.models import Order, OrderItem, OrderStatusHistory


def order_repository() -> DjangoRepository[Order]:
    return DjangoRepository(Order, prefetch_related=("items",))


def order_item_repository() -> DjangoRepository[OrderItem]:
    return DjangoRepository(OrderItem)


def status_history_repository() -> DjangoRepository[OrderStatusHistory]:
    return DjangoRepository(OrderStatusHistory)


__all__ = [
    "order_item_repository",
    "order_repository",
    "status_history_repository",
]
