"""
StorageBackend implementation on top of SQLAlchemy's async sessions.

The session is injected (usually by the application's dependency wiring) and is never
committed or rolled back here: `flush()` sends the SQL inside the caller's transaction
so generated keys and server defaults become visible, and the caller decides when the
transaction ends.

By default every error SQLAlchemy raises reaches the caller as is, `IntegrityError`
included. Pass `translate_integrity=True` to have constraint violations re-raised as
`DuplicateError` / `RepositoryError` (the original stays available as `__cause__`).
"""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, nullcontext
from typing import Any, Sequence, TypeVar

from sqlalchemy import select, inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from crud_data.exceptions import InvalidFieldError
from crud_data.exceptions.integrity_mapper import translate_integrity_errors

from .base import StorageBackend

E = TypeVar("E")

logger = logging.getLogger(__name__)


class SQLAlchemyBackend(StorageBackend):
    """
    Async SQLAlchemy backend.

    Args:
        session: The async database session. All entities loaded through this backend
                 are attached to it.
        translate_integrity: Re-raise `IntegrityError`s from flushes as typed repository
                 errors (DuplicateError, RepositoryError). Off by default.
    """

    def __init__(self, session: AsyncSession, *, translate_integrity: bool = False):
        self.session = session
        self.translate_integrity = translate_integrity

    def _flush_guard(self, entity: Any) -> AbstractAsyncContextManager[None]:
        if self.translate_integrity:
            return translate_integrity_errors(type(entity).__name__)
        return nullcontext()

    async def load_by_key(self, entity_type: type[E], key: Any) -> E | None:
        # session.get() checks the identity map first, then emits SELECT ... WHERE pk = :key
        return await self.session.get(entity_type, key)

    async def persist(self, entity: Any) -> None:
        self.session.add(entity)
        async with self._flush_guard(entity):
            await self.session.flush()
        # reload server-generated values (autoincrement id, server_default timestamps)
        await self.session.refresh(entity)

    async def merge(self, entity: E) -> E:
        async with self._flush_guard(entity):
            merged = await self.session.merge(entity)
            await self.session.flush()
        # onupdate columns are expired by the flush; load them now, lazy loads are not allowed under asyncio
        await self.session.refresh(merged)
        return merged

    async def remove(self, entity: Any) -> None:
        await self.session.delete(entity)
        async with self._flush_guard(entity):
            await self.session.flush()

    async def scan_all(self, entity_type: type[E]) -> Sequence[E]:
        result = await self.session.execute(select(entity_type))
        return list(result.scalars().all())

    async def scan_by_field_equals(self, entity_type: type[E], field_name: str, value: Any) -> Sequence[E]:
        column_keys = {attr.key for attr in sa_inspect(entity_type).column_attrs}
        if field_name not in column_keys:
            logger.info(
                "backend.scan_by_field.invalid_field",
                extra={"entity": entity_type.__name__, "field": field_name},
            )
            raise InvalidFieldError(f"{entity_type.__name__} has no field '{field_name}'", fields=[field_name])

        query = select(entity_type).where(getattr(entity_type, field_name) == value)
        result = await self.session.execute(query)
        return list(result.scalars().all())
