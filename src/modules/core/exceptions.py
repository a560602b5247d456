"""Domain error taxonomy shared by every module.

Each module subclasses one of these kinds for its own failures
(e.g. ``OrderNotFound(NotFound)``).  The outer transport layer maps
``code`` to a response status.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all business-rule violations."""

    code = "domain_error"


class NotFound(DomainError):
    """A referenced order or product does not exist."""

    code = "not_found"


class InsufficientStock(DomainError):
    """Requested quantity exceeds the product's available stock."""

    code = "insufficient_stock"

    def __init__(
        self,
        product_id: object,
        requested: int,
        available: int,
        product_name: str = "",
    ) -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.product_name = product_name
        label = product_name or str(product_id)
        super().__init__(
            f"Insufficient stock for product {label}: "
            f"requested {requested}, available {available}."
        )


class Forbidden(DomainError):
    """The requester is not allowed to act on the order."""

    code = "forbidden"


class InvalidTransition(DomainError):
    """An illegal order status change was attempted."""

    code = "invalid_transition"


class DomainValidationError(DomainError):
    """Malformed input (empty item list, non-positive quantity, ...)."""

    code = "validation_error"


class PersistenceError(DomainError):
    """Storage layer failure not otherwise classified."""

    code = "persistence_error"
