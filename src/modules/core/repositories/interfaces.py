"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the single persistence contract shared by
every entity.  Entity-specific look-ups are not added by subclassing:
they are free functions that take an ``IRepository[T]`` and build on
``query()`` (see ``modules.orders.repositories.queries``).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, TypeVar

from django.db import models

T = TypeVar("T", bound=models.Model)


class IRepository(Protocol[T]):
    """Base generic repository contract.

    Type parameter ``T`` is the model managed by the repository
    (e.g. ``Order``, ``OrderItem``, ``Product``).  Every method runs in
    whatever transaction scope is open on the calling thread.
    """

    model: type[T]

    def query(self) -> models.QuerySet[T]:
        """Base queryset with the repository's eager-loading applied."""
        ...

    def get_by_id(self, id: Any) -> Optional[T]:
        """Retrieve an entity by primary key, ``None`` if absent."""
        ...

    def get_for_update(self, id: Any) -> Optional[T]:
        """Retrieve an entity holding a row-level lock until scope end."""
        ...

    def create(self, fields: Mapping[str, Any]) -> T:
        """Insert a new row and return the saved entity."""
        ...

    def update(self, id: Any, fields: Mapping[str, Any]) -> int:
        """Apply a partial update; returns the number of rows changed."""
        ...
