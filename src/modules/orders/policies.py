"""Authorization preconditions for ``update_order_status``.

Who may move an order through processing/shipped/delivered is decided
by the integrating system, not by the coordinator.  The coordinator
calls the configured policy with the locked order and the acting user
and refuses the change when it returns ``False``.

- ``allow_any_actor``: no ownership check (the historical behaviour).
- ``SellerOwnsAnItem``: the actor must sell at least one product in
  the order.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from django.core.exceptions import ImproperlyConfigured

from modules.core.repositories.interfaces import IRepository
from modules.orders.models import Order, OrderItem
from modules.orders.repositories.queries import seller_owns_item_in_order

StatusUpdatePolicy = Callable[[Order, Any], bool]


def allow_any_actor(order: Order, actor_id: Any) -> bool:
    return True


class SellerOwnsAnItem:
    """Allow the change only for a seller of one of the order's products."""

    def __init__(self, items: IRepository[OrderItem]) -> None:
        self._items = items

    def __call__(self, order: Order, actor_id: Any) -> bool:
        if actor_id is None:
            return False
        return seller_owns_item_in_order(self._items, order.id, actor_id)


def build_status_update_policy(name: str, items: IRepository[OrderItem]) -> StatusUpdatePolicy:
    """Resolve the ``ORDERS_STATUS_UPDATE_POLICY`` setting to a policy."""
    factories: Dict[str, Callable[[], StatusUpdatePolicy]] = {
        "allow_any_actor": lambda: allow_any_actor,
        "seller_owns_an_item": lambda: SellerOwnsAnItem(items),
    }
    try:
        return factories[name]()
    except KeyError:
        raise ImproperlyConfigured(
            f"Unknown ORDERS_STATUS_UPDATE_POLICY {name!r}; "
            f"expected one of {sorted(factories)}."
        ) from None
