"""
Contracts shared by the repository and service layers.

- `Identifiable`: what every data object must offer (an `id` primary key accessor).
- `CrudOperations`: the repository surface a `CrudService` needs. `CrudRepository`
  satisfies it, but any object with the same async methods can be wrapped.
"""
from typing import Any, Protocol, TypeVar, runtime_checkable

K = TypeVar("K", covariant=True)  # Primary key type


@runtime_checkable
class Identifiable(Protocol[K]):
    """
    A data object that exposes its primary key as `id`.

    The key may be None before the object is created; once persisted it identifies the
    record. Pydantic models and dataclasses with an `id` field satisfy this structurally.
    """

    @property
    def id(self) -> K | None: ...


D = TypeVar("D", bound=Identifiable)            # Data object type
KeyT = TypeVar("KeyT", contravariant=True)      # Primary key type, as accepted by lookups


@runtime_checkable
class CrudOperations(Protocol[D, KeyT]):
    """Repository surface used by CrudService."""

    @property
    def entity_name(self) -> str: ...

    async def find_by_id(self, id: KeyT) -> D: ...

    async def get_all(self) -> list[D]: ...

    async def create(self, data: D) -> D: ...

    async def update(self, data: D) -> D: ...

    async def delete_by_id(self, id: KeyT) -> D: ...


def is_identifiable(obj: Any) -> bool:
    """True when `obj` exposes an `id` attribute (its value may still be None)."""
    return isinstance(obj, Identifiable)


def primary_key_of(obj: Identifiable) -> Any:
    """Return the primary key of an Identifiable data object (None when not yet assigned)."""
    return obj.id


__all__ = ["Identifiable", "CrudOperations", "is_identifiable", "primary_key_of"]
