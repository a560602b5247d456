"""Django ORM implementation of the generic repository.

One class serves every entity: it is parameterized by the model class
and the relations to eager-load, instead of being subclassed per entity.
Error handling follows the Null Object pattern: look-ups return ``None``
for missing rows and malformed keys, and the caller decides how to
translate that into a domain error.
"""

from __future__ import annotations

from typing import Any, Generic, Mapping, Optional, Sequence

import structlog
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from modules.core.repositories.interfaces import T

logger = structlog.get_logger(__name__)


class DjangoRepository(Generic[T]):
    """Concrete repository backed by Django's QuerySet API."""

    def __init__(
        self,
        model: type[T],
        select_related: Sequence[str] = (),
        prefetch_related: Sequence[str] = (),
    ) -> None:
        self.model = model
        self._select_related = tuple(select_related)
        self._prefetch_related = tuple(prefetch_related)
        self._label = model._meta.label_lower

    def __repr__(self) -> str:
        return f"DjangoRepository({self.model.__name__})"

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def query(self) -> models.QuerySet[T]:
        queryset = self.model._default_manager.all()
        if self._select_related:
            queryset = queryset.select_related(*self._select_related)
        if self._prefetch_related:
            queryset = queryset.prefetch_related(*self._prefetch_related)
        return queryset

    def get_by_id(self, id: Any) -> Optional[T]:
        """Return the entity or ``None`` for non-existent or invalid IDs."""
        try:
            return self.query().filter(pk=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: Any) -> Optional[T]:
        """Retrieve an entity with a row-level lock (SELECT FOR UPDATE).

        ``of=("self",)`` keeps the lock on this table only when
        ``select_related`` joins are present.  Must be called inside an
        open transaction scope.
        """
        try:
            queryset = self.query()
            if self._select_related:
                queryset = queryset.select_for_update(of=("self",))
            else:
                queryset = queryset.select_for_update()
            return queryset.filter(pk=id).first()
        except (ValueError, ValidationError):
            return None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create(self, fields: Mapping[str, Any]) -> T:
        entity = self.model(**fields)
        entity.save()
        logger.info(f"{self._label}.created", id=str(entity.pk))
        return entity

    def update(self, id: Any, fields: Mapping[str, Any]) -> int:
        """Partial update via a single ``UPDATE`` statement.

        ``updated_at`` is refreshed when the model carries one, since
        ``QuerySet.update`` bypasses ``auto_now``.
        """
        values = dict(fields)
        if any(f.name == "updated_at" for f in self.model._meta.concrete_fields):
            values.setdefault("updated_at", timezone.now())
        changed = self.model._default_manager.filter(pk=id).update(**values)
        logger.info(
            f"{self._label}.updated",
            id=str(id),
            fields=sorted(fields),
            rows=changed,
        )
        return changed
