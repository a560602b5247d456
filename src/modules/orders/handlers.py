"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from shared.infrastructure.bus import IEventHandler, InMemoryEventBus

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info("order.event.created", **event.to_log_fields())


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info("order.event.cancelled", **event.to_log_fields())


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info("order.event.status_changed", **event.to_log_fields())


def register_order_handlers(bus: InMemoryEventBus) -> None:
    """Subscribe the logging handlers for every order event."""
    bus.subscribe(OrderCreated, OrderCreatedHandler())
    bus.subscribe(OrderCancelled, OrderCancelledHandler())
    bus.subscribe(OrderStatusChanged, OrderStatusChangedHandler())
