"""Product model: the catalog entry whose stock the order engine mutates.

Business rules implemented:
- Price must be greater than zero.
- Stock can never be negative (database check constraint, so a bad
  ``UPDATE`` fails instead of overselling silently).
- Each product belongs to exactly one seller.

Catalog CRUD lives outside this project; the order engine only reads
``price`` and adjusts ``stock``.
"""

from __future__ import annotations

from decimal import Decimal

import structlog
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Product(BaseModel):
    """Catalog product with live stock counter."""

    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="products",
    )
    name = models.CharField(max_length=255)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    stock = models.IntegerField(default=0)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(price__gt=0),
                name="products_price_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(stock__gte=0),
                name="products_stock_non_negative",
            ),
        ]

    def save(self, *args, **kwargs) -> None:
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info(
                "product.created",
                product_id=str(self.id),
                seller_id=str(self.seller_id),
                stock=self.stock,
            )

    def __str__(self) -> str:
        return f"{self.name} ({self.stock} in stock)"
