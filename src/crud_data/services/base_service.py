"""
Generic CRUD service with lifecycle hooks.

`CrudService` sits on top of one repository (any `CrudOperations`), validates arguments
and runs hooks around every mutation. Behaviour specific to a record type (validation,
auditing, cache invalidation, cascading changes) goes into a `ServiceHooks` subclass that
is passed to the service, rather than into a service subclass.
"""
import logging
from typing import Generic, TypeVar

from crud_data.contracts import CrudOperations, Identifiable, primary_key_of
from crud_data.exceptions import InvalidArgumentError

D = TypeVar("D", bound=Identifiable)  # Data object type
K = TypeVar("K")  # Primary key type

logger = logging.getLogger(__name__)


class ServiceHooks(Generic[D]):
    """
    Lifecycle hooks run by CrudService. Every hook is a no-op by default; override the ones you need.

    - Hooks are awaited in-line, in the caller's task.
    - An exception raised by a before_* hook aborts the operation before anything is written.
    - An exception raised by an after_* hook is raised after the write; it does not undo it.
    """

    async def before_create(self, data: D) -> None:
        """Runs before the record is created. May modify `data`."""

    async def after_create(self, created: D) -> None:
        """Runs after the record was created."""

    async def before_update(self, previous: D, data: D) -> None:
        """Runs before the update. `previous` is the stored state, `data` the requested one."""

    async def after_update(self, previous: D, updated: D) -> None:
        """Runs after the update. `previous` is the state before the update."""

    async def before_delete(self, to_delete: D) -> None:
        """Runs before the record is deleted."""

    async def after_delete(self, deleted: D) -> None:
        """Runs after the record was deleted."""


class CrudService(Generic[D, K]):
    """
    Service providing CRUD operations plus lifecycle hooks on top of a repository.

    Type Parameters:
        D: The data object type.
        K: The primary key type.
    """

    def __init__(self, repository: CrudOperations[D, K], hooks: ServiceHooks[D] | None = None):
        """
        Args:
            repository: The repository every operation is delegated to (a CrudRepository, or
                        anything else implementing CrudOperations)
            hooks: Lifecycle hooks. Defaults to ServiceHooks() (all no-ops).
        """
        self.repository = repository
        self.hooks: ServiceHooks[D] = hooks or ServiceHooks()

    @property
    def _entity(self) -> str:
        return self.repository.entity_name

    async def get_by_id(self, id: K) -> D:
        """
        Get a record by its primary key.

        Raises:
            InvalidArgumentError: If `id` is None.
            ObjectNotFoundError: If no record exists for `id`.
        """
        return await self.repository.find_by_id(id)

    async def get_all(self) -> list[D]:
        """Get every record. No hooks run for bulk reads."""
        return await self.repository.get_all()

    async def create(self, data: D) -> D:
        """
        Create a record: before_create -> repository.create -> after_create.

        Raises:
            InvalidArgumentError: If `data` is None.
        """
        if data is None:
            raise InvalidArgumentError("Object to create must not be None", fields=["data"])

        logger.debug("service.create.start", extra={"entity": self._entity, "operation": "create"})
        await self.hooks.before_create(data)
        created = await self.repository.create(data)
        await self.hooks.after_create(created)
        return created

    async def update(self, data: D) -> D:
        """
        Update a record: fetch current state -> before_update -> repository.update -> after_update.

        Raises:
            InvalidArgumentError: If `data` (or its id) is None.
            ObjectNotFoundError: If the record no longer exists.
        """
        if data is None:
            raise InvalidArgumentError("Object to update must not be None", fields=["data"])

        key = primary_key_of(data)
        logger.debug("service.update.start", extra={"entity": self._entity, "operation": "update", "id": key})
        previous = await self.get_by_id(key)
        await self.hooks.before_update(previous, data)
        updated = await self.repository.update(data)
        await self.hooks.after_update(previous, updated)
        return updated

    async def delete_by_id(self, id: K) -> D:
        """
        Delete a record: fetch current state -> before_delete -> repository.delete_by_id -> after_delete.

        Raises:
            InvalidArgumentError: If `id` is None.
            ObjectNotFoundError: If no record exists for `id`.
        """
        logger.debug("service.delete_by_id.start", extra={"entity": self._entity, "operation": "delete_by_id", "id": id})
        to_delete = await self.get_by_id(id)
        await self.hooks.before_delete(to_delete)
        deleted = await self.repository.delete_by_id(id)
        await self.hooks.after_delete(deleted)
        return deleted
