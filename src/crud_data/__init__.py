"""
Generic persistence-access layer: map data objects onto storage entities, run CRUD
through a pluggable backend, and hook into every mutation.

Usage:
    from crud_data import CrudRepository, CrudService, ServiceHooks, SQLAlchemyBackend

    repo = CrudRepository(UserData, UserEntity, SQLAlchemyBackend(session))
    service = CrudService(repo, hooks=AuditHooks())
    created = await service.create(UserData(name="alice"))
"""

from .backends import StorageBackend, SQLAlchemyBackend
from .contracts import Identifiable, CrudOperations
from .exceptions import (
    RepositoryError,
    ObjectNotFoundError,
    InvalidArgumentError,
    RepositoryConfigurationError,
    DuplicateError,
    InvalidFieldError,
)
from .mapping import copy_fields, declared_attributes, BlindMapper, FieldMapping, Mapper
from .repositories import CrudRepository
from .services import CrudService, ServiceHooks

__all__ = [
    "StorageBackend",
    "SQLAlchemyBackend",
    "Identifiable",
    "CrudOperations",
    "RepositoryError",
    "ObjectNotFoundError",
    "InvalidArgumentError",
    "RepositoryConfigurationError",
    "DuplicateError",
    "InvalidFieldError",
    "copy_fields",
    "declared_attributes",
    "BlindMapper",
    "FieldMapping",
    "Mapper",
    "CrudRepository",
    "CrudService",
    "ServiceHooks",
]
