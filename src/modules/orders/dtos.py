"""Order DTOs for the coordinator boundary.

Framework-agnostic data transfer objects using Pydantic v2.
DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: input for a single order line item.
- ``CreateOrderDTO``: input for order creation (nested items).
- ``OrderItemOutputDTO``: output for a single line item.
- ``StatusHistoryDTO``: output for a status history record.
- ``OrderOutputDTO``: full aggregate with items and total.
- ``OrderSummaryDTO``: list row with computed item count and total.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

if TYPE_CHECKING:
    from modules.orders.models import Order, OrderStatusHistory


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The caller sends ``product_id`` and ``quantity``.  The price is
    resolved by the coordinator from the product catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``buyer_id`` must be given.
    - ``items`` must contain at least one item.
    - Each item quantity must be positive.
    - A product may appear only once per order.
    - ``shipping_address`` must not be blank.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    buyer_id: Any
    shipping_address: str
    items: List[CreateOrderItemDTO]

    @field_validator("buyer_id")
    @classmethod
    def buyer_is_required(cls, v: Any) -> Any:
        if v is None or v == "":
            raise ValueError("Buyer is required.")
        return v

    @field_validator("shipping_address")
    @classmethod
    def address_must_not_be_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Shipping address is required.")
        return v

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v

    @model_validator(mode="after")
    def no_duplicate_products(self):
        """Prevent duplicate product IDs in the same order."""
        product_ids = [item.product_id for item in self.items]
        if len(product_ids) != len(set(product_ids)):
            raise ValueError("Duplicate product IDs are not allowed in the same order.")
        return self


# ---------------------------------------------------------------------------
# Output DTOs
# ---------------------------------------------------------------------------


class OrderItemOutputDTO(BaseModel):
    """Immutable DTO for an order line."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    product_id: UUID
    quantity: int
    price: Decimal
    subtotal: Decimal


class StatusHistoryDTO(BaseModel):
    """Immutable DTO for an order status history record."""

    model_config = ConfigDict(frozen=True)

    old_status: Optional[str]
    new_status: str
    notes: str
    created_at: datetime

    @classmethod
    def from_entity(cls, history: OrderStatusHistory) -> StatusHistoryDTO:
        return cls(
            old_status=history.old_status,
            new_status=history.new_status,
            notes=history.notes,
            created_at=history.created_at,
        )


class OrderOutputDTO(BaseModel):
    """Immutable DTO for a full order aggregate."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    buyer_id: Any
    shipping_address: str
    status: str
    total: Decimal
    created_at: datetime
    items: List[OrderItemOutputDTO]

    @classmethod
    def from_entity(cls, order: Order) -> OrderOutputDTO:
        """Build an output DTO from an Order model instance.

        Assumes ``items`` are prefetched.
        """
        items = [
            OrderItemOutputDTO(
                id=item.id,
                product_id=item.product_id,
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
            )
            for item in order.items.all()
        ]
        return cls(
            id=order.id,
            buyer_id=order.buyer_id,
            shipping_address=order.shipping_address,
            status=order.status,
            total=sum((item.subtotal for item in items), Decimal("0.00")),
            created_at=order.created_at,
            items=items,
        )


class OrderSummaryDTO(BaseModel):
    """Immutable DTO for a row of a buyer or seller order listing."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    buyer_id: Any
    status: str
    created_at: datetime
    total_items: int
    total_amount: Decimal

    @classmethod
    def from_entity(cls, order: Order) -> OrderSummaryDTO:
        """Build from an order annotated by the listing queries."""
        return cls(
            id=order.id,
            buyer_id=order.buyer_id,
            status=order.status,
            created_at=order.created_at,
            total_items=order.total_items,
            total_amount=order.total_amount or Decimal("0.00"),
        )
