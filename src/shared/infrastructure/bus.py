"""In-memory event bus implementation.

There is no module-level bus: each ``OrderContext`` owns one, so tests
and processes never share subscribers by accident.
"""

from __future__ import annotations

from typing import Dict, Generic, Iterable, List, Protocol, Type, TypeVar

import structlog

from shared.domain.events import DomainEvent

logger = structlog.get_logger(__name__)

E = TypeVar("E", bound=DomainEvent, contravariant=True)


class IEventHandler(Protocol, Generic[E]):
    """Handler interface for domain events."""

    def handle(self, event: E) -> None: ...


class InMemoryEventBus:
    """Simple in-process event bus.

    Handlers run synchronously in subscription order.  Events are published
    after commit, so a handler failure is logged instead of raised.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[IEventHandler]] = {}

    def subscribe(self, event_class: Type[DomainEvent], handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_class, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event: DomainEvent) -> None:
        """Dispatch *event* to every handler subscribed to its type.

        A failing handler is logged and skipped; the remaining handlers
        still run and nothing is raised to the publisher.
        """
        handlers = self._handlers.get(type(event), [])
        logger.debug(
            "event.published", event_name=event.event_name, handlers=len(handlers)
        )
        for handler in handlers:
            try:
                handler.handle(event)
            except Exception:
                logger.exception(
                    "event.handler_failed",
                    event_name=event.event_name,
                    handler=type(handler).__name__,
                    aggregate_id=str(event.aggregate_id),
                )

    def publish_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.publish(event)
