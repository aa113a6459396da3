import logging
from dataclasses import dataclass

import pytest
from sqlalchemy.exc import IntegrityError

from crud_data.backends import SQLAlchemyBackend, StorageBackend
from crud_data.contracts import Identifiable
from crud_data.exceptions import (
    DuplicateError,
    InvalidArgumentError,
    InvalidFieldError,
    ObjectNotFoundError,
    RepositoryConfigurationError,
)
from crud_data.mapping import FieldMapping
from crud_data.repositories import CrudRepository
from crud_data.tests.test_fixtures.models import ProfileData, UserData, UserEntity, UserRepository


@pytest.mark.asyncio
class TestCrudRepositoryCreate:

    async def test_create_assigns_generated_id(self, user_repository, sample_user):
        """
        Behavior:
                - create() copies the data object into a new entity, flushes it, and copies it back
                  into a NEW data object, so the generated key is visible.
        """
        created = await user_repository.create(sample_user)

        assert isinstance(created.id, int)
        assert created is not sample_user
        assert created.name == "alice"
        assert created.email == "alice@example.com"
        # the caller's object is left untouched
        assert sample_user.id is None

    async def test_create_then_find_returns_equal_record(self, user_repository, sample_user):
        created = await user_repository.create(sample_user)

        found = await user_repository.find_by_id(created.id)

        assert found == created
        assert found is not created

    async def test_create_leaves_entity_only_columns_to_the_backend(self, user_repository, db_session, sample_user):
        created = await user_repository.create(sample_user)

        entity = await db_session.get(UserEntity, created.id)
        assert entity.status == "active"
        assert entity.created_at is not None

    async def test_create_copies_underscore_attributes(self, user_repository, sample_user):
        sample_user._note = "vip"

        created = await user_repository.create(sample_user)
        found = await user_repository.find_by_id(created.id)

        assert found._note == "vip"

    async def test_create_drops_data_only_attributes(self, user_repository):
        created = await user_repository.create(UserData(name="bob", nickname="bobby"))
        assert created.nickname is None

    async def test_create_duplicate_surfaces_duplicate_error(self, db_session):
        repo = UserRepository(SQLAlchemyBackend(db_session, translate_integrity=True))
        await repo.create(UserData(name="first", email="same@example.com"))

        with pytest.raises(DuplicateError) as exc_info:
            await repo.create(UserData(name="second", email="same@example.com"))

        assert exc_info.value.fields == ["email"]
        assert exc_info.value.error_code == "duplicate"
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    async def test_create_duplicate_passes_driver_error_through_by_default(self, create_user):
        await create_user(email="same@example.com")

        with pytest.raises(IntegrityError):
            await create_user(email="same@example.com")

    async def test_create_none_raises_invalid_argument(self, user_repository):
        with pytest.raises(InvalidArgumentError):
            await user_repository.create(None)

    async def test_create_logs_success_event(self, user_repository, sample_user, caplog):
        caplog.set_level(logging.INFO, logger="crud_data.repositories")

        created = await user_repository.create(sample_user)

        records = [r for r in caplog.records if r.getMessage() == "repo.create.success"]
        assert len(records) == 1
        assert records[0].entity == "UserEntity"
        assert records[0].id == created.id
        assert isinstance(records[0].duration_ms, int)


@pytest.mark.asyncio
class TestCrudRepositoryRead:

    async def test_find_by_id_missing_raises_not_found(self, user_repository):
        with pytest.raises(ObjectNotFoundError) as exc_info:
            await user_repository.find_by_id(12345)

        assert exc_info.value.object_id == 12345
        assert exc_info.value.entity_type == "UserEntity"

    async def test_find_by_id_none_raises_invalid_argument(self, user_repository):
        with pytest.raises(InvalidArgumentError):
            await user_repository.find_by_id(None)

    async def test_find_by_id_returns_fresh_objects(self, user_repository, created_user):
        first = await user_repository.find_by_id(created_user.id)
        second = await user_repository.find_by_id(created_user.id)

        assert first == second
        assert first is not second

    async def test_get_all_returns_every_record_in_backend_order(self, user_repository, multiple_users):
        all_users = await user_repository.get_all()

        assert [u.id for u in all_users] == [u.id for u in multiple_users]
        assert all(isinstance(u, UserData) for u in all_users)

    async def test_get_all_is_repeatable(self, user_repository, multiple_users):
        first = await user_repository.get_all()
        second = await user_repository.get_all()

        assert first == second

    async def test_get_all_empty(self, user_repository):
        assert await user_repository.get_all() == []

    async def test_find_by_field_equals(self, user_repository, create_user):
        await create_user(name="twin", email="t1@example.com")
        await create_user(name="twin", email="t2@example.com")
        await create_user(name="other")

        twins = await user_repository.find_by_field_equals("name", "twin")

        assert sorted(u.email for u in twins) == ["t1@example.com", "t2@example.com"]

    async def test_custom_query_built_on_find_by_field_equals(self, user_repository, created_user):
        found = await user_repository.find_by_email("alice@example.com")
        assert [u.id for u in found] == [created_user.id]

        assert await user_repository.find_by_email("nobody@example.com") == []

    async def test_find_by_field_equals_unknown_field(self, user_repository):
        with pytest.raises(InvalidFieldError) as exc_info:
            await user_repository.find_by_field_equals("nickname", "x")
        assert exc_info.value.fields == ["nickname"]

    @pytest.mark.parametrize("field_name, field_value", [(None, "x"), ("name", None)])
    async def test_find_by_field_equals_requires_both_arguments(self, user_repository, field_name, field_value):
        with pytest.raises(InvalidArgumentError):
            await user_repository.find_by_field_equals(field_name, field_value)


@pytest.mark.asyncio
class TestCrudRepositoryUpdate:

    async def test_update_returns_same_instance_with_new_values(self, user_repository, created_user):
        changes = UserData(id=created_user.id, name="alice-renamed", email="new@example.com", nickname="al")

        updated = await user_repository.update(changes)

        assert updated is changes
        assert updated.name == "alice-renamed"
        # data-only attribute survives the round trip
        assert updated.nickname == "al"

        stored = await user_repository.find_by_id(created_user.id)
        assert stored.name == "alice-renamed"
        assert stored.email == "new@example.com"

    async def test_update_preserves_entity_only_columns(self, user_repository, db_session, created_user):
        entity = await db_session.get(UserEntity, created_user.id)
        entity.status = "suspended"
        await db_session.flush()

        await user_repository.update(UserData(id=created_user.id, name="still-suspended"))

        refreshed = await db_session.get(UserEntity, created_user.id)
        assert refreshed.status == "suspended"
        assert refreshed.name == "still-suspended"
        assert refreshed.updated_at is not None

    async def test_update_missing_record_raises_not_found(self, user_repository):
        with pytest.raises(ObjectNotFoundError) as exc_info:
            await user_repository.update(UserData(id=999, name="ghost"))
        assert exc_info.value.object_id == 999

    async def test_update_without_id_raises_not_found(self, user_repository):
        with pytest.raises(ObjectNotFoundError):
            await user_repository.update(UserData(name="no-id"))

    async def test_update_none_raises_invalid_argument(self, user_repository):
        with pytest.raises(InvalidArgumentError):
            await user_repository.update(None)


@pytest.mark.asyncio
class TestCrudRepositoryDelete:

    async def test_delete_returns_deleted_record(self, user_repository, created_user):
        deleted = await user_repository.delete_by_id(created_user.id)

        assert deleted == created_user
        assert deleted is not created_user

        with pytest.raises(ObjectNotFoundError):
            await user_repository.find_by_id(created_user.id)

    async def test_delete_missing_raises_not_found(self, user_repository):
        with pytest.raises(ObjectNotFoundError) as exc_info:
            await user_repository.delete_by_id(4242)
        assert exc_info.value.object_id == 4242

    async def test_delete_none_raises_invalid_argument(self, user_repository):
        with pytest.raises(InvalidArgumentError):
            await user_repository.delete_by_id(None)


class _NeedsArguments:
    def __init__(self, value):
        self.value = value


@dataclass
class _NoKey:
    name: str = ""
    email: str | None = None


class _BrokenBackend(StorageBackend):
    """Backend whose every call fails, to check failures are not wrapped."""

    def __init__(self, error: Exception):
        self.error = error

    async def load_by_key(self, entity_type, key):
        raise self.error

    async def persist(self, entity):
        raise self.error

    async def merge(self, entity):
        raise self.error

    async def remove(self, entity):
        raise self.error

    async def scan_all(self, entity_type):
        raise self.error

    async def scan_by_field_equals(self, entity_type, field_name, value):
        raise self.error


class TestCrudRepositoryConstruction:

    def test_data_factory_returning_none_fails_fast(self, backend):
        with pytest.raises(RepositoryConfigurationError):
            CrudRepository(UserData, UserEntity, backend, data_factory=lambda: None)

    def test_type_without_zero_argument_constructor_fails_fast(self, backend):
        with pytest.raises(RepositoryConfigurationError) as exc_info:
            CrudRepository(_NeedsArguments, UserEntity, backend)
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_entity_factory_error_fails_fast(self, backend):
        def broken():
            raise RuntimeError("boom")

        with pytest.raises(RepositoryConfigurationError):
            CrudRepository(UserData, UserEntity, backend, entity_factory=broken)

    def test_mapping_table_is_checked_at_construction(self, backend):
        with pytest.raises(RepositoryConfigurationError):
            CrudRepository(ProfileData, UserEntity, backend, mapper=FieldMapping({"display_name": "full_name"}))

    def test_data_type_without_id_is_rejected(self, backend):
        """
        Behavior:
                - a data type with no `id` accessor cannot be wired into a repository,
                  because update() would never be able to locate the stored record.
        """
        with pytest.raises(RepositoryConfigurationError) as exc_info:
            CrudRepository(_NoKey, UserEntity, backend)

        assert exc_info.value.fields == ["id"]
        assert "_NoKey" in exc_info.value.message

    def test_data_types_with_id_are_identifiable(self):
        assert isinstance(UserData(), Identifiable)
        assert isinstance(ProfileData(), Identifiable)
        assert not isinstance(_NoKey(), Identifiable)

    def test_entity_name(self, backend):
        assert CrudRepository(UserData, UserEntity, backend).entity_name == "UserEntity"


@pytest.mark.asyncio
class TestCrudRepositoryCollaborators:

    async def test_explicit_field_mapping_with_renamed_attributes(self, backend):
        repo = CrudRepository(
            ProfileData, UserEntity, backend,
            mapper=FieldMapping({"id": "id", "display_name": "name", "email": "email"}),
        )

        created = await repo.create(ProfileData(display_name="frank", email="f@example.com"))
        found = await repo.find_by_id(created.id)

        assert found == ProfileData(id=created.id, display_name="frank", email="f@example.com")

    async def test_custom_data_factory_is_used_for_fresh_objects(self, backend, sample_user):
        repo = CrudRepository(UserData, UserEntity, backend, data_factory=lambda: UserData(nickname="from-factory"))

        created = await repo.create(sample_user)

        assert created.nickname == "from-factory"

    async def test_backend_failures_propagate_unchanged(self):
        error = ConnectionError("database unreachable")
        repo = CrudRepository(UserData, UserEntity, _BrokenBackend(error))

        with pytest.raises(ConnectionError) as exc_info:
            await repo.get_all()
        assert exc_info.value is error

        with pytest.raises(ConnectionError):
            await repo.find_by_id(1)
