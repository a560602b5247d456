"""Order transaction coordinator (Use Cases).

Orchestrates order creation, cancellation and status progression.
Every write operation is a single unit of work: it runs inside one
transaction scope and either commits completely or leaves no trace.

Business rules enforced:
- An order is created only if every requested product exists and has
  enough stock; stock for all items is reserved in the same scope.
- Item prices are captured from the catalog once, at validation time.
- Only the buyer may cancel, and only while the order is pending;
  cancellation restores exactly the reserved quantities.
- Status changes follow ``OrderStatusMachine`` and the configured
  status-update policy.
- Every status change is recorded in the order's history.
- Domain events are published only after the scope commits.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from modules.core.exceptions import InsufficientStock
from modules.core.pagination import Pagination
from modules.orders.constants import (
    CANCELLABLE_STATES,
    INITIAL_STATUS,
    ORDER_CANCELLED_NOTE,
    ORDER_CREATED_NOTE,
    OrderStatus,
)
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.events import OrderCancelled, OrderCreated, OrderStatusChanged
from modules.orders.exceptions import (
    InvalidOrderRequest,
    InvalidOrderStatus,
    NotOrderOwner,
    OrderNotFound,
    StatusUpdateNotAllowed,
)
from modules.orders.policies import StatusUpdatePolicy, allow_any_actor
from modules.orders.repositories.queries import (
    create_item,
    find_by_buyer,
    find_by_seller,
    find_history_by_order,
    find_items_by_order,
    record_status_change,
)
from modules.products.exceptions import ProductNotFound

if TYPE_CHECKING:
    from decimal import Decimal

    from modules.core.repositories.interfaces import IRepository
    from modules.core.transactions import DjangoUnitOfWork, TransactionScope
    from modules.inventory.ledger import InventoryLedger
    from modules.orders.models import Order, OrderItem, OrderStatusHistory
    from modules.orders.state_machine import OrderStatusMachine
    from modules.products.catalog import ProductCatalog
    from shared.infrastructure.bus import InMemoryEventBus

logger = structlog.get_logger(__name__)

ItemRequest = Union[CreateOrderItemDTO, Mapping[str, Any]]


class OrderTransactionCoordinator:
    """Application service for Order use-cases.

    Receives every collaborator via constructor injection; build it with
    ``modules.orders.context.build_order_context``.
    """

    def __init__(
        self,
        unit_of_work: DjangoUnitOfWork,
        catalog: ProductCatalog,
        ledger: InventoryLedger,
        orders: IRepository[Order],
        items: IRepository[OrderItem],
        history: IRepository[OrderStatusHistory],
        status_machine: OrderStatusMachine,
        event_bus: InMemoryEventBus,
        status_update_policy: StatusUpdatePolicy = allow_any_actor,
    ) -> None:
        self._uow = unit_of_work
        self._catalog = catalog
        self._ledger = ledger
        self._orders = orders
        self._items = items
        self._history = history
        self._machine = status_machine
        self._bus = event_bus
        self._authorize = status_update_policy

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_order(
        self,
        buyer_id: Any,
        shipping_address: str,
        items: Iterable[ItemRequest],
    ) -> Order:
        """Create a pending order and reserve stock for all its items.

        Steps:
        1. Validate the request shape.
        2. For each item, in request order: look up the product, check
           stock and capture its current price.
        3. Reserve stock for every item (row-locked, sorted by product).
        4. Persist the order header, its items and the initial history.
        5. Commit, then return the reloaded aggregate.

        Raises:
            InvalidOrderRequest: empty item list, quantity < 1, blank
                address or repeated product.
            ProductNotFound: a product does not exist.
            InsufficientStock: a product lacks stock (names the product).
        """
        dto = _parse_create_request(buyer_id, shipping_address, items)
        log = logger.bind(buyer_id=str(dto.buyer_id))
        log.info("order.creation_started", item_count=len(dto.items))

        with self._uow.scope("order.create") as scope:
            prices = self._price_items(dto.items)

            self._ledger.reserve_many(
                (item.product_id, item.quantity) for item in dto.items
            )

            order = self._orders.create(
                {
                    "buyer_id": dto.buyer_id,
                    "shipping_address": dto.shipping_address,
                    "status": INITIAL_STATUS,
                }
            )
            for item in dto.items:
                create_item(
                    self._items,
                    {
                        "order": order,
                        "product_id": item.product_id,
                        "quantity": item.quantity,
                        "price": prices[item.product_id],
                    },
                )
            record_status_change(
                self._history,
                order_id=order.id,
                new_status=INITIAL_STATUS,
                changed_by_id=dto.buyer_id,
                notes=ORDER_CREATED_NOTE,
            )

            order.add_domain_event(
                OrderCreated(
                    aggregate_id=order.id,
                    buyer_id=str(dto.buyer_id),
                    item_count=len(dto.items),
                )
            )
            self._publish_on_commit(scope, order)

        log.info("order.created", order_id=str(order.id))
        return self._reload(order.id)

    def cancel_order(self, order_id: Any, requester_id: Any, reason: str = "") -> Order:
        """Cancel a pending order and release its reserved stock.

        The order row is locked first, so of two concurrent cancellations
        only one sees ``pending``; the other fails without releasing
        stock a second time.

        Raises:
            OrderNotFound: order does not exist.
            NotOrderOwner: requester is not the order's buyer.
            InvalidOrderStatus: order is not pending.
        """
        log = logger.bind(order_id=str(order_id), requester_id=str(requester_id))

        with self._uow.scope("order.cancel") as scope:
            order = self._orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found.")

            if str(order.buyer_id) != str(requester_id):
                log.warning("order.cancel_forbidden")
                raise NotOrderOwner(f"Not authorized to cancel order {order_id}.")

            target = OrderStatus.CANCELLED
            if order.status not in CANCELLABLE_STATES or not self._machine.validate(
                order.status, target
            ):
                log.warning("order.cancel_not_allowed", current_status=order.status)
                raise InvalidOrderStatus(
                    order.status,
                    target.value,
                    f"Only pending orders can be cancelled; order is {order.status}.",
                )

            self._ledger.release_many(
                (item.product_id, item.quantity)
                for item in find_items_by_order(self._items, order.id)
            )
            self._apply_status(
                order, target, actor_id=requester_id, notes=reason or ORDER_CANCELLED_NOTE
            )

            order.add_domain_event(
                OrderCancelled(aggregate_id=order.id, cancelled_by=str(requester_id))
            )
            self._publish_on_commit(scope, order)

        log.info("order.cancelled")
        return self._reload(order.id)

    def update_order_status(
        self,
        order_id: Any,
        new_status: Union[OrderStatus, str],
        actor_id: Any = None,
        notes: str = "",
    ) -> Order:
        """Move an order to *new_status* if the transition is legal.

        Runs in its own scope with the order row locked, so it cannot
        interleave with a concurrent cancellation of the same order.
        Never touches stock.

        Raises:
            OrderNotFound: order does not exist.
            StatusUpdateNotAllowed: the status-update policy rejected
                *actor_id*.
            InvalidOrderRequest: *new_status* is not a known status.
            InvalidOrderStatus: the transition is not allowed.
        """
        with self._uow.scope("order.update_status") as scope:
            order = self._orders.get_for_update(order_id)
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found.")

            log = logger.bind(
                order_id=str(order_id),
                current_status=order.status,
                new_status=str(new_status),
            )

            if not self._authorize(order, actor_id):
                log.warning("order.status_update_forbidden", actor_id=str(actor_id))
                raise StatusUpdateNotAllowed(
                    f"Actor {actor_id} may not update order {order_id}."
                )

            target = self._machine.parse(new_status)
            if not self._machine.validate(order.status, target):
                log.warning("order.invalid_transition")
                raise InvalidOrderStatus(order.status, target.value)

            old_status = order.status
            self._apply_status(order, target, actor_id=actor_id, notes=notes)

            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=target.value,
                )
            )
            self._publish_on_commit(scope, order)

        log.info("order.status_updated")
        return self._reload(order.id)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: Any) -> Order:
        """Retrieve a single order with its items.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._orders.get_by_id(order_id)
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_by_buyer(
        self, buyer_id: Any, pagination: Optional[Pagination] = None
    ) -> List[Order]:
        return find_by_buyer(self._orders, buyer_id, pagination or Pagination())

    def list_by_seller(
        self, seller_id: Any, pagination: Optional[Pagination] = None
    ) -> List[Order]:
        return find_by_seller(self._orders, seller_id, pagination or Pagination())

    def get_status_history(self, order_id: Any) -> List[OrderStatusHistory]:
        order = self.get_order(order_id)
        return find_history_by_order(self._history, order.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _price_items(self, items: Iterable[CreateOrderItemDTO]) -> dict[Any, Decimal]:
        prices: dict[Any, Decimal] = {}
        for item in items:
            product = self._catalog.find_by_id(item.product_id)
            if product is None:
                raise ProductNotFound(f"Product {item.product_id} not found.")
            if product.stock < item.quantity:
                raise InsufficientStock(
                    product.id, item.quantity, product.stock, product.name
                )
            prices[item.product_id] = product.price
        return prices

    def _apply_status(
        self, order: Order, new_status: OrderStatus, actor_id: Any, notes: str
    ) -> None:
        old_status = order.status
        self._orders.update(order.id, {"status": new_status})
        record_status_change(
            self._history,
            order_id=order.id,
            new_status=new_status,
            old_status=old_status,
            changed_by_id=actor_id,
            notes=notes,
        )
        order.status = new_status

    def _publish_on_commit(self, scope: TransactionScope, order: Order) -> None:
        events = order.pull_domain_events()
        scope.on_commit(lambda: self._bus.publish_all(events))

    def _reload(self, order_id: Any) -> Order:
        return self.get_order(order_id)


def _parse_create_request(
    buyer_id: Any, shipping_address: str, items: Iterable[ItemRequest]
) -> CreateOrderDTO:
    try:
        lines = list(items) if items is not None else []
    except TypeError as exc:
        raise InvalidOrderRequest(
            f"Order items must be a list, got {type(items).__name__}."
        ) from exc
    try:
        return CreateOrderDTO(
            buyer_id=buyer_id,
            shipping_address=shipping_address,
            items=lines,
        )
    except ValidationError as exc:
        messages = "; ".join(error["msg"] for error in exc.errors())
        raise InvalidOrderRequest(messages) from exc
