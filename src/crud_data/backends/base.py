"""Storage backend contract: the only capabilities the CRUD core needs from a datastore."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence, TypeVar

E = TypeVar("E")  # Entity object type


class StorageBackend(ABC):
    """Abstract base for all storage backends.

    The backend owns the entity instances for the duration of a unit of work, and
    owns transactions, locking and timeouts. Its failures are propagated to callers
    of the repository without being wrapped.
    """

    @abstractmethod
    async def load_by_key(self, entity_type: type[E], key: Any) -> E | None:
        """Return the entity stored under `key`, or ``None`` if there is none."""
        ...

    @abstractmethod
    async def persist(self, entity: Any) -> None:
        """Store a new entity. The write is flushed (visible) when this returns."""
        ...

    @abstractmethod
    async def merge(self, entity: E) -> E:
        """Reconcile a modified entity with the stored record and return the managed one."""
        ...

    @abstractmethod
    async def remove(self, entity: Any) -> None:
        """Delete a stored entity."""
        ...

    @abstractmethod
    async def scan_all(self, entity_type: type[E]) -> Sequence[E]:
        """Return every stored entity of `entity_type`, in the backend's default order."""
        ...

    @abstractmethod
    async def scan_by_field_equals(self, entity_type: type[E], field_name: str, value: Any) -> Sequence[E]:
        """Return every stored entity whose `field_name` equals `value`."""
        ...
