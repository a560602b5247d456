"""Product DTOs exposed by the catalog collaborator.

``ProductSnapshot`` is what the order engine sees of a product: a frozen
copy read at a point in time.  Order items copy ``price`` out of it, so
later catalog price changes never reach existing orders.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.products.models import Product


class ProductSnapshot(BaseModel):
    """Immutable view of a product's price and stock."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    price: Decimal
    stock: int
    seller_id: Any

    @classmethod
    def from_entity(cls, product: Product) -> ProductSnapshot:
        return cls(
            id=product.id,
            name=product.name,
            price=product.price,
            stock=product.stock,
            seller_id=product.seller_id,
        )
