"""
Generic CRUD repository over a pluggable storage backend.

`CrudRepository` works with two independently-typed records:

- the data object (D): what callers see, e.g. a pydantic model
- the entity object (E): what the backend stores, e.g. a SQLAlchemy model

Every operation converts between the two through a mapper (blind name matching by
default). Concrete repositories subclass it to add their own queries, usually on top of
`find_by_field_equals()`.
"""
import time
import logging
from typing import Any, Callable, Generic, TypeVar

from crud_data.backends.base import StorageBackend
from crud_data.contracts import Identifiable, is_identifiable, primary_key_of
from crud_data.exceptions import ObjectNotFoundError, RepositoryConfigurationError, require_not_none
from crud_data.mapping import BlindMapper, Mapper

D = TypeVar("D", bound=Identifiable)  # Data object type
E = TypeVar("E")    # Entity object type
PK = TypeVar("PK")  # Primary key type

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class CrudRepository(Generic[D, E, PK]):
    """
    Generic repository providing CRUD operations for one (data object, entity) pair.

    Type Parameters:
        D: The data object type handed to and returned from callers.
        E: The entity type the backend stores.
        PK: The primary key type.
    """

    def __init__(
        self,
        data_type: type[D],
        entity_type: type[E],
        backend: StorageBackend,
        *,
        data_factory: Callable[[], D] | None = None,
        entity_factory: Callable[[], E] | None = None,
        mapper: Mapper[D, E] | None = None,
    ):
        """
        Initialize the repository.

        Args:
            data_type: The data object class (e.g. UserData)
            entity_type: The entity class the backend stores (e.g. UserEntity)
            backend: The storage backend, e.g. SQLAlchemyBackend(session)
            data_factory: Zero-argument callable returning an empty data object. Defaults to `data_type`.
            entity_factory: Zero-argument callable returning an empty entity. Defaults to `entity_type`.
            mapper: Conversion strategy. Defaults to BlindMapper (copy same-named attributes).

        Raises:
            RepositoryConfigurationError: If either factory fails or returns None, the data type
                is not Identifiable, or the mapper rejects the pair. This happens here, at
                wiring time, not on first use.
        """
        self.data_type = data_type
        self.entity_type = entity_type
        self.backend = backend
        self.mapper: Mapper[D, E] = mapper or BlindMapper()
        self._data_factory = data_factory or data_type
        self._entity_factory = entity_factory or entity_type

        data_sample = self._instantiate(self._data_factory, "data_factory")
        entity_sample = self._instantiate(self._entity_factory, "entity_factory")
        if not is_identifiable(data_sample):
            # without an `id` accessor, update() could never locate the stored record
            raise RepositoryConfigurationError(
                f"{type(self).__name__}: data type {type(data_sample).__name__} has no 'id' attribute",
                fields=["id"],
            )
        self.mapper.check(data_sample, entity_sample)

    @property
    def entity_name(self) -> str:
        return self.entity_type.__name__

    # =================================================================================================================
    # Instantiation & conversion (overridable)
    # =================================================================================================================

    def _instantiate(self, factory: Callable[[], Any], label: str) -> Any:
        try:
            instance = factory()
        except Exception as e:
            raise RepositoryConfigurationError(
                f"{type(self).__name__}: {label} could not create an instance: {e}"
            ) from e
        if instance is None:
            raise RepositoryConfigurationError(f"{type(self).__name__}: {label} must return an instance, got None")
        return instance

    def new_data_object(self) -> D:
        """Create a fresh, empty data object."""
        return self._data_factory()

    def new_entity_object(self) -> E:
        """Create a fresh, empty entity object."""
        return self._entity_factory()

    def convert_from_entity(self, entity: E, data: D) -> D:
        """Fill `data` from `entity` and return it."""
        return self.mapper.to_data(entity, data)

    def convert_to_entity(self, data: D, entity: E) -> E:
        """Fill `entity` from `data` and return it."""
        return self.mapper.to_entity(data, entity)

    def convert_from_entities(self, entities) -> list[D]:
        """Convert each entity into a fresh data object, keeping the order."""
        return [self.convert_from_entity(entity, self.new_data_object()) for entity in entities]

    async def _load_entity_or_raise(self, key: Any, operation: str) -> E:
        entity = await self.backend.load_by_key(self.entity_type, key)
        if entity is None:
            # INFO: a missing record is an expected outcome, not a fault
            logger.info(
                f"repo.{operation}.not_found",
                extra={"entity": self.entity_name, "operation": operation, "id": key},
            )
            raise ObjectNotFoundError(self.entity_name, key)
        return entity

    # =================================================================================================================
    # Read Operations
    # =================================================================================================================

    async def find_by_id(self, id: PK) -> D:
        """
        Get a record by its primary key.

        Args:
            id: The primary key

        Returns:
            A fresh data object filled from the stored entity

        Raises:
            InvalidArgumentError: If `id` is None.
            ObjectNotFoundError: If no record exists for `id`.
        """
        require_not_none(id, "id")
        logger.debug("repo.find_by_id.start", extra={"entity": self.entity_name, "operation": "find_by_id", "id": id})

        entity = await self._load_entity_or_raise(id, "find_by_id")
        return self.convert_from_entity(entity, self.new_data_object())

    async def get_all(self) -> list[D]:
        """
        Get every record, in the order the backend returns them.

        Returns:
            A list of fresh data objects (empty if there are none).
        """
        entities = await self.backend.scan_all(self.entity_type)
        logger.debug(
            "repo.get_all.success",
            extra={"entity": self.entity_name, "operation": "get_all", "count": len(entities)},
        )
        return self.convert_from_entities(entities)

    async def find_by_field_equals(self, field_name: str, field_value: Any) -> list[D]:
        """
        Find every record whose `field_name` equals `field_value`.

        Intended as the building block for concrete repositories, e.g.:
            async def find_by_email(self, email): return await self.find_by_field_equals("email", email)

        Args:
            field_name: Entity attribute to compare
            field_value: Value it must equal (exact equality)

        Raises:
            InvalidArgumentError: If either argument is None.
        """
        require_not_none(field_name, "field_name")
        require_not_none(field_value, "field_value")

        entities = await self.backend.scan_by_field_equals(self.entity_type, field_name, field_value)
        logger.debug(
            "repo.find_by_field_equals.success",
            extra={"entity": self.entity_name, "operation": "find_by_field_equals",
                   "field": field_name, "count": len(entities)},
        )
        return self.convert_from_entities(entities)

    # =================================================================================================================
    # Write Operations
    # =================================================================================================================

    async def create(self, data: D) -> D:
        """
        Store a new record.

        The data object is copied into a fresh entity, persisted (flushed), and the
        persisted entity is copied into a fresh data object so backend-assigned values
        (generated id, audit columns) are visible to the caller.

        Raises:
            InvalidArgumentError: If `data` is None.
        """
        require_not_none(data, "data")
        logger.debug("repo.create.start", extra={"entity": self.entity_name, "operation": "create"})
        start = time.perf_counter()

        entity = self.convert_to_entity(data, self.new_entity_object())
        await self.backend.persist(entity)
        created = self.convert_from_entity(entity, self.new_data_object())

        logger.info(
            "repo.create.success",
            extra={"entity": self.entity_name, "operation": "create",
                   "id": primary_key_of(created), "duration_ms": _elapsed_ms(start)},
        )
        return created

    async def update(self, data: D) -> D:
        """
        Update an existing record from `data`.

        Steps:
          1. Load the stored entity for `data.id`.
          2. Copy `data` onto that loaded entity (entity-only fields are kept).
          3. Merge it through the backend.
          4. Copy the merged entity back onto `data` itself (data-only fields are kept).

        Returns:
            The same `data` instance that was passed in, refreshed from the backend.

        Raises:
            InvalidArgumentError: If `data` is None.
            ObjectNotFoundError: If `data.id` is None or no record exists for it.
        """
        require_not_none(data, "data")
        key = primary_key_of(data)
        logger.debug("repo.update.start", extra={"entity": self.entity_name, "operation": "update", "id": key})
        start = time.perf_counter()

        if key is None:
            logger.info("repo.update.not_found", extra={"entity": self.entity_name, "operation": "update", "id": None})
            raise ObjectNotFoundError(self.entity_name, None)

        origin = await self._load_entity_or_raise(key, "update")
        updated_entity = self.convert_to_entity(data, origin)
        merged = await self.backend.merge(updated_entity)
        result = self.convert_from_entity(merged, data)

        logger.info(
            "repo.update.success",
            extra={"entity": self.entity_name, "operation": "update", "id": key, "duration_ms": _elapsed_ms(start)},
        )
        return result

    async def delete_by_id(self, id: PK) -> D:
        """
        Delete a record by its primary key.

        Returns:
            A fresh data object holding the values of the deleted record.

        Raises:
            InvalidArgumentError: If `id` is None.
            ObjectNotFoundError: If no record exists for `id`.
        """
        require_not_none(id, "id")
        logger.debug("repo.delete_by_id.start", extra={"entity": self.entity_name, "operation": "delete_by_id", "id": id})
        start = time.perf_counter()

        origin = await self._load_entity_or_raise(id, "delete_by_id")
        deleted = self.convert_from_entity(origin, self.new_data_object())
        await self.backend.remove(origin)

        logger.info(
            "repo.delete_by_id.success",
            extra={"entity": self.entity_name, "operation": "delete_by_id", "id": id, "duration_ms": _elapsed_ms(start)},
        )
        return deleted


r"""
# =================================================================================================================
# Why update() returns the caller's object while create()/delete_by_id() return fresh ones
# =================================================================================================================

create():        data --copy--> new entity --persist--> entity --copy--> NEW data
delete_by_id():  stored entity --copy--> NEW data, then remove
update():        data --copy--> STORED entity --merge--> merged --copy--> SAME data

For update the copy goes onto the entity that was just loaded, not a blank one, so any
column the data object does not declare (created_at, an internal flag, ...) keeps its
stored value instead of being reset. The way back lands on the caller's object for the
same reason: attributes only the data object declares (a nickname computed in the UI,
say) survive the round trip, and backend-assigned values (updated_at) are merged in.
"""
