"""
Field-by-field copying between independently-typed records.

A data object (pydantic model, dataclass, plain object) and an entity object (usually a
SQLAlchemy model) share no base class. The only link between them is that attributes
with the same name hold the same value. This module copies those attributes across.

Two strategies are provided:

- `BlindMapper` copies every attribute the source declares that the destination also
  declares, matched by exact name.
- `FieldMapping` copies an explicit table of `data_attr -> entity_attr` pairs, which
  allows renames and is checked against both types when a repository is built.

Both follow the same rule: an attribute that cannot be read or assigned (a validating
model rejects the value, a read-only property, a frozen record) is skipped and the
copy carries on. Only a missing source or destination is an error.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
from typing import Any, Generic, Iterable, Mapping, Protocol, TypeVar

from pydantic import BaseModel
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Mapper as SAMapper

from crud_data.exceptions import RepositoryConfigurationError, require_not_none

logger = logging.getLogger(__name__)

D = TypeVar("D")  # Data object type
E = TypeVar("E")  # Entity object type
S = TypeVar("S")
T = TypeVar("T")


# =================================================================================================================
# Attribute discovery
# =================================================================================================================

def _annotated_names(cls: type) -> tuple[str, ...]:
    # own annotations only per class, so walk the MRO; a redeclared name keeps its first position
    names: dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        names.update(dict.fromkeys(inspect.get_annotations(klass)))
    return tuple(names)


def declared_attributes(obj: Any) -> tuple[str, ...]:
    """
    Return the attribute names declared by the record type of `obj`.

    Args:
        obj: a record instance (or a record class for the class-based kinds)

    Returns:
        Attribute names, in declaration order:
          - SQLAlchemy mapped class -> mapped column attribute keys (relationships excluded)
          - pydantic model -> model fields, then private attributes (`_name` / PrivateAttr)
          - dataclass -> dataclass fields
          - any other class -> annotated names, base classes first
          - any other instance -> keys of the instance `__dict__`

    Underscore-prefixed names are included; visibility does not matter for copying.
    """
    cls = obj if isinstance(obj, type) else type(obj)

    mapper = sa_inspect(cls, raiseerr=False)
    if isinstance(mapper, SAMapper):
        return tuple(attr.key for attr in mapper.column_attrs)

    if issubclass(cls, BaseModel):
        return tuple(cls.model_fields) + tuple(cls.__private_attributes__)

    if dataclasses.is_dataclass(cls):
        return tuple(f.name for f in dataclasses.fields(cls))

    if isinstance(obj, type):
        return _annotated_names(cls)

    if hasattr(obj, "__dict__"):
        return tuple(vars(obj))
    return tuple(getattr(cls, "__slots__", ()))


def _assign(source: Any, destination: Any, source_name: str, destination_name: str) -> bool:
    """Copy one attribute. Returns False (and logs at DEBUG) when it had to be skipped."""
    try:
        setattr(destination, destination_name, getattr(source, source_name))
        return True
    except Exception as exc:
        logger.debug(
            "mapper.field_skipped",
            extra={
                "source_type": type(source).__name__,
                "destination_type": type(destination).__name__,
                "field": destination_name,
                "reason": type(exc).__name__,
            },
        )
        return False


def copy_fields(source: S, destination: T) -> T:
    """
    Copy every attribute declared on `source`'s type onto the same-named attribute declared
    on `destination`'s type.

    Args:
        source: record to read from
        destination: record to write into (modified in place)

    Returns:
        `destination`, for chaining.

    Raises:
        InvalidArgumentError: if `source` or `destination` is None.

    Notes:
        - Attributes only the destination declares keep their current value.
        - Attributes only the source declares are ignored.
        - Values are assigned by reference (shallow copy).
    """
    require_not_none(source, "source")
    require_not_none(destination, "destination")

    destination_names = set(declared_attributes(destination))
    for name in declared_attributes(source):
        if name in destination_names:
            _assign(source, destination, name, name)

    return destination


# =================================================================================================================
# Mapper strategies
# =================================================================================================================

class Mapper(Protocol[D, E]):
    """Converts between a data object and an entity object by filling an existing instance."""

    def to_entity(self, data: D, entity: E) -> E:
        """Copy `data` onto `entity` and return `entity`."""
        ...

    def to_data(self, entity: E, data: D) -> D:
        """Copy `entity` onto `data` and return `data`."""
        ...

    def check(self, data_sample: D, entity_sample: E) -> None:
        """Validate the mapping against sample instances; raise RepositoryConfigurationError if broken."""
        ...


class BlindMapper(Generic[D, E]):
    """Name-matching mapper: every attribute declared on both sides is copied."""

    def to_entity(self, data: D, entity: E) -> E:
        return copy_fields(data, entity)

    def to_data(self, entity: E, data: D) -> D:
        return copy_fields(entity, data)

    def check(self, data_sample: D, entity_sample: E) -> None:
        # nothing to validate: unmatched names are skipped at copy time
        return None


class FieldMapping(Generic[D, E]):
    """
    Explicit mapping table of `data attribute -> entity attribute` pairs.

    Example:
        FieldMapping({"id": "id", "name": "username", "email": "email"})

    Only the listed pairs are copied, in both directions. `check()` runs when the
    repository is built and rejects pairs naming attributes the types do not declare.
    """

    def __init__(self, pairs: Mapping[str, str] | Iterable[tuple[str, str]]):
        self.pairs: dict[str, str] = dict(pairs)
        if not self.pairs:
            raise RepositoryConfigurationError("FieldMapping needs at least one field pair")

    @classmethod
    def from_names(cls, *names: str) -> "FieldMapping[D, E]":
        """Build a mapping where each attribute keeps its name on both sides."""
        return cls({name: name for name in names})

    def to_entity(self, data: D, entity: E) -> E:
        require_not_none(data, "data")
        require_not_none(entity, "entity")
        for data_name, entity_name in self.pairs.items():
            _assign(data, entity, data_name, entity_name)
        return entity

    def to_data(self, entity: E, data: D) -> D:
        require_not_none(entity, "entity")
        require_not_none(data, "data")
        for data_name, entity_name in self.pairs.items():
            _assign(entity, data, entity_name, data_name)
        return data

    def check(self, data_sample: D, entity_sample: E) -> None:
        data_names = set(declared_attributes(data_sample))
        entity_names = set(declared_attributes(entity_sample))

        unknown = [d for d in self.pairs if d not in data_names]
        unknown += [e for e in self.pairs.values() if e not in entity_names]
        if unknown:
            raise RepositoryConfigurationError(
                f"Field mapping between {type(data_sample).__name__} and {type(entity_sample).__name__} "
                f"names undeclared attribute(s): {', '.join(unknown)}",
                fields=unknown,
            )


__all__ = [
    "declared_attributes",
    "copy_fields",
    "Mapper",
    "BlindMapper",
    "FieldMapping",
]
