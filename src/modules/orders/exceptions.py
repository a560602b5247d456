"""Order domain exceptions.

Raised by the coordinator when business rules are violated.  Each one
specializes a kind from ``modules.core.exceptions`` so the outer layer
can map it without knowing about orders.
"""

from __future__ import annotations

from modules.core.exceptions import (
    DomainValidationError,
    Forbidden,
    InvalidTransition,
    NotFound,
)


class OrderNotFound(NotFound):
    """The requested order does not exist."""


class NotOrderOwner(Forbidden):
    """Only the buyer who placed an order may cancel it."""


class StatusUpdateNotAllowed(Forbidden):
    """The configured status-update policy rejected the actor."""


class InvalidOrderStatus(InvalidTransition):
    """The order's current status does not allow the requested change."""

    def __init__(self, current: str, requested: str, message: str = "") -> None:
        self.current = current
        self.requested = requested
        super().__init__(message or f"Cannot transition from {current} to {requested}.")


class InvalidOrderRequest(DomainValidationError):
    """The order request is malformed (no items, bad quantity, ...)."""
