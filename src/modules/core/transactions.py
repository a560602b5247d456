"""Transaction scope collaborator.

``DjangoUnitOfWork.scope()`` is the only way the order engine opens a
unit of work.  It wraps ``transaction.atomic()`` so the scope is
committed when the ``with`` block exits normally and rolled back on any
exception.

Django ``DatabaseError`` escaping a scope is re-raised as
``PersistenceError`` (chained); domain errors propagate unchanged.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, Optional, Protocol

import structlog
from django.db import DatabaseError, transaction

from modules.core.exceptions import DomainError, PersistenceError

logger = structlog.get_logger(__name__)


class TransactionScope(Protocol):
    """Handle yielded to code running inside a unit of work."""

    name: str

    def on_commit(self, callback: Callable[[], None]) -> None: ...


class DjangoTransactionScope:
    """Scope handle bound to a Django database alias."""

    def __init__(self, name: str, using: Optional[str] = None) -> None:
        self.name = name
        self.using = using

    def on_commit(self, callback: Callable[[], None]) -> None:
        """Run *callback* only if the outermost transaction commits.

        ``robust=True``: an error in *callback* is logged by Django and does
        not reach the caller, whose work is already committed.
        """
        transaction.on_commit(callback, using=self.using, robust=True)


class DjangoUnitOfWork:
    """Opens transaction scopes on a Django database connection."""

    def __init__(self, using: Optional[str] = None) -> None:
        self.using = using

    @contextmanager
    def scope(self, name: str) -> Iterator[DjangoTransactionScope]:
        log = logger.bind(scope=name)
        try:
            with transaction.atomic(using=self.using):
                yield DjangoTransactionScope(name, using=self.using)
        except DomainError as exc:
            log.info("transaction.rolled_back", reason=exc.code)
            raise
        except DatabaseError as exc:
            log.error("transaction.rolled_back", reason="database_error", error=str(exc))
            raise PersistenceError(f"Storage failure in {name}: {exc}") from exc
        log.debug("transaction.committed")


def require_scope(using: Optional[str] = None) -> None:
    """Raise ``PersistenceError`` unless called inside an open transaction."""
    if not transaction.get_connection(using).in_atomic_block:
        raise PersistenceError("Operation requires an open transaction scope.")
