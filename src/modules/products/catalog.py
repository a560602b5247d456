"""Catalog collaborator consumed by the order engine.

Exposes exactly what order processing needs from the product catalog:
a price/stock snapshot, a row-locking read, and an atomic stock
adjustment.  All three run in the transaction scope open on the calling
thread; ``adjust_stock`` is only ever called by ``InventoryLedger``.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.db.models import F
from django.utils import timezone

from modules.core.repositories.django_repository import DjangoRepository
from modules.core.repositories.interfaces import IRepository
from modules.products.dtos import ProductSnapshot
from modules.products.models import Product

logger = structlog.get_logger(__name__)


class ProductCatalog:
    """Read/adjust access to product stock backed by ``IRepository[Product]``."""

    def __init__(self, repository: Optional[IRepository[Product]] = None) -> None:
        self._repo = repository or DjangoRepository(Product)

    def find_by_id(self, product_id: Any) -> Optional[ProductSnapshot]:
        """Return a snapshot of the product, ``None`` if it does not exist."""
        product = self._repo.get_by_id(product_id)
        if product is None:
            return None
        return ProductSnapshot.from_entity(product)

    def lock(self, product_id: Any) -> Optional[ProductSnapshot]:
        """Row-lock the product until the current scope ends and snapshot it."""
        product = self._repo.get_for_update(product_id)
        if product is None:
            return None
        return ProductSnapshot.from_entity(product)

    def adjust_stock(self, product_id: Any, delta: int) -> bool:
        """Atomically add *delta* (negative to reserve) to the stock counter.

        The ``UPDATE`` is conditional on the result staying non-negative,
        so it is safe even without a prior ``lock``.  Returns ``False``
        when nothing was changed (unknown product or not enough stock).
        """
        queryset = self._repo.model._default_manager.filter(pk=product_id)
        if delta < 0:
            queryset = queryset.filter(stock__gte=-delta)
        changed = queryset.update(stock=F("stock") + delta, updated_at=timezone.now())
        logger.debug(
            "catalog.stock_adjusted",
            product_id=str(product_id),
            delta=delta,
            applied=bool(changed),
        )
        return bool(changed)
