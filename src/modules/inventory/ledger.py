"""Inventory ledger: the only component allowed to mutate stock counters.

Business rules enforced:
- A reservation succeeds only if ``stock >= quantity`` at the moment the
  product row is locked; otherwise nothing is mutated.
- A release adds the quantity back with no upper bound; restoring more
  than was reserved is the caller's error, not something the ledger can
  detect.
- Both operations require an open transaction scope.  The row lock is
  held until that scope ends, so a competing reservation on the same
  product waits and then observes the decremented stock.
- Batches are applied in ascending product-id order so that two orders
  touching the same products always lock rows in the same order.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Tuple

import structlog

from modules.core.exceptions import DomainValidationError, InsufficientStock
from modules.core.transactions import require_scope
from modules.products.catalog import ProductCatalog
from modules.products.exceptions import ProductNotFound

logger = structlog.get_logger(__name__)

StockLine = Tuple[Any, int]


class InventoryLedger:
    """Atomic reserve/release of product stock."""

    def __init__(self, catalog: ProductCatalog) -> None:
        self._catalog = catalog

    def reserve(self, product_id: Any, quantity: int) -> int:
        """Decrement stock by *quantity*; returns the remaining stock.

        Raises:
            DomainValidationError: quantity is not positive.
            ProductNotFound: the product does not exist.
            InsufficientStock: stock is lower than *quantity*.
        """
        _check_quantity(quantity)
        require_scope()

        product = self._catalog.lock(product_id)
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        if product.stock < quantity:
            logger.warning(
                "inventory.reservation_rejected",
                product_id=str(product_id),
                requested=quantity,
                available=product.stock,
            )
            raise InsufficientStock(product.id, quantity, product.stock, product.name)

        if not self._catalog.adjust_stock(product.id, -quantity):
            # Only reachable on backends without row locks, where another
            # writer got in between the read and the conditional UPDATE.
            current = self._catalog.find_by_id(product.id)
            available = current.stock if current else 0
            raise InsufficientStock(product.id, quantity, available, product.name)

        remaining = product.stock - quantity
        logger.info(
            "inventory.stock_reserved",
            product_id=str(product.id),
            quantity=quantity,
            remaining=remaining,
        )
        return remaining

    def release(self, product_id: Any, quantity: int) -> int:
        """Increment stock by *quantity*; returns the restored stock.

        Raises:
            DomainValidationError: quantity is not positive.
            ProductNotFound: the product does not exist.
        """
        _check_quantity(quantity)
        require_scope()

        product = self._catalog.lock(product_id)
        if product is None:
            raise ProductNotFound(f"Product {product_id} not found.")
        self._catalog.adjust_stock(product.id, quantity)

        restored = product.stock + quantity
        logger.info(
            "inventory.stock_released",
            product_id=str(product.id),
            quantity=quantity,
            restored_stock=restored,
        )
        return restored

    def reserve_many(self, lines: Iterable[StockLine]) -> None:
        for product_id, quantity in _lock_order(lines):
            self.reserve(product_id, quantity)

    def release_many(self, lines: Iterable[StockLine]) -> None:
        for product_id, quantity in _lock_order(lines):
            self.release(product_id, quantity)


def _check_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise DomainValidationError(f"Quantity must be a positive integer, got {quantity!r}.")


def _lock_order(lines: Iterable[StockLine]) -> List[StockLine]:
    return sorted(lines, key=lambda line: str(line[0]))
