"""Domain events for the Orders bounded context.

Published on the context's event bus only after the transaction that
produced them commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is created and its stock reserved."""

    buyer_id: Optional[str] = None
    item_count: int = 0


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled and its stock released."""

    cancelled_by: Optional[str] = None


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when an order status changes."""

    old_status: str = ""
    new_status: str = ""
