"""Composition root for the order engine.

``build_order_context()`` wires one set of collaborators: a unit of
work, the catalog, the inventory ledger, repositories, the status
machine, an event bus with the order handlers subscribed, and the
coordinator that uses them.  Nothing here is module-global; tests build
a fresh context per test.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from django.conf import settings

from modules.core.transactions import DjangoUnitOfWork
from modules.inventory.ledger import InventoryLedger
from modules.orders.handlers import register_order_handlers
from modules.orders.policies import build_status_update_policy
from modules.orders.repositories import (
    order_item_repository,
    order_repository,
    status_history_repository,
)
from modules.orders.services import OrderTransactionCoordinator
from modules.orders.state_machine import OrderStatusMachine
from modules.products.catalog import ProductCatalog
from shared.infrastructure.bus import InMemoryEventBus


@dataclass(frozen=True)
class OrderContext:
    unit_of_work: DjangoUnitOfWork
    catalog: ProductCatalog
    ledger: InventoryLedger
    status_machine: OrderStatusMachine
    event_bus: InMemoryEventBus
    coordinator: OrderTransactionCoordinator


def build_order_context(
    using: Optional[str] = None,
    status_update_policy: Optional[str] = None,
    event_bus: Optional[InMemoryEventBus] = None,
) -> OrderContext:
    """Build a fully wired ``OrderContext``.

    ``status_update_policy`` defaults to ``settings.ORDERS_STATUS_UPDATE_POLICY``.
    Pass ``event_bus`` to subscribe extra handlers before use; the order
    logging handlers are registered on it either way.
    """
    unit_of_work = DjangoUnitOfWork(using=using)
    catalog = ProductCatalog()
    ledger = InventoryLedger(catalog)
    machine = OrderStatusMachine()
    bus = event_bus if event_bus is not None else InMemoryEventBus()
    register_order_handlers(bus)

    orders = order_repository()
    items = order_item_repository()
    history = status_history_repository()
    policy = build_status_update_policy(
        status_update_policy or settings.ORDERS_STATUS_UPDATE_POLICY, items
    )

    coordinator = OrderTransactionCoordinator(
        unit_of_work=unit_of_work,
        catalog=catalog,
        ledger=ledger,
        orders=orders,
        items=items,
        history=history,
        status_machine=machine,
        event_bus=bus,
        status_update_policy=policy,
    )
    return OrderContext(
        unit_of_work=unit_of_work,
        catalog=catalog,
        ledger=ledger,
        status_machine=machine,
        event_bus=bus,
        coordinator=coordinator,
    )
