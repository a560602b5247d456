"""Order domain constants.

Defines the status enum and the transition table of the order state
machine.  The table is keyed by every ``OrderStatus`` member and checked
at import time, so adding a status without deciding its transitions
fails immediately instead of falling through to "no transitions".
"""

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Mapping

from django.core.exceptions import ImproperlyConfigured
from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


def _build_transitions(
    table: Mapping[OrderStatus, FrozenSet[OrderStatus]],
) -> Mapping[OrderStatus, FrozenSet[OrderStatus]]:
    missing = set(OrderStatus) - set(table)
    if missing:
        raise ImproperlyConfigured(
            f"Order transition table is missing {sorted(missing)}."
        )
    for source, targets in table.items():
        if not isinstance(source, OrderStatus) or not all(
            isinstance(target, OrderStatus) for target in targets
        ):
            raise ImproperlyConfigured(
                f"Order transition table entry {source!r} uses a non-OrderStatus value."
            )
    return MappingProxyType(dict(table))


VALID_TRANSITIONS: Mapping[OrderStatus, FrozenSet[OrderStatus]] = _build_transitions(
    {
        OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
        OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
        OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
        OrderStatus.DELIVERED: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    }
)

INITIAL_STATUS = OrderStatus.PENDING

TERMINAL_STATES: FrozenSet[OrderStatus] = frozenset(
    status for status, targets in VALID_TRANSITIONS.items() if not targets
)

CANCELLABLE_STATES: FrozenSet[OrderStatus] = frozenset({OrderStatus.PENDING})

ORDER_CANCELLED_NOTE = "Order cancelled"
ORDER_CREATED_NOTE = "Order created"
