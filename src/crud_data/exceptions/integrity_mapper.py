"""
Map SQLAlchemy integrity failures to app-level repository errors.

Only `IntegrityError` is translated. Everything else a backend raises (connectivity,
timeouts, programming errors) passes through untouched, and nothing here commits or
rolls back: the transaction belongs to whoever owns the session.
"""
import re
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError

from .integrity_classifier import (
    classify_integrity_error,
    UniqueConstraintError,
    NotNullConstraintError,
    ForeignKeyConstraintError,
    CheckConstraintError,
)
from .base import DuplicateError, RepositoryError

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Extract column names from common Postgres messages:
      - 'null value in column "username" violates not-null constraint'
      - 'DETAIL:  Key (email, username)=(a@b.com, u) already exists.'
    """
    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # SQLite: 'UNIQUE constraint failed: users.email' / 'NOT NULL constraint failed: users.email'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols"))]
    return None


def _extract_columns_mysql(msg: str) -> list[str] | None:
    # MySQL: "Duplicate entry 'foo' for key 'users.ix_users_email'"
    m = re.search(r"for key '(?P<key>[^']+)'", msg, flags=re.IGNORECASE)
    if m:
        return [m.group("key")]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite, MySQL).
    """
    msg = str(exc.orig) if exc.orig is not None else str(exc)
    if not msg:
        return None

    for extractor in (_extract_columns_postgres, _extract_columns_sqlite, _extract_columns_mysql):
        cols = extractor(msg)
        if cols:
            return cols
    return None


# -----------------------
# Mapper
# -----------------------

def raise_mapped_integrity_error(exc: IntegrityError, entity_name: str | None = None) -> None:
    """
    Map a SQLAlchemy IntegrityError to an app-level exception and raise it.
    Populates `.fields` and `.constraint` where possible.
    """
    exc_cls, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)

    entity_part = entity_name or "Record"

    if exc_cls is UniqueConstraintError:
        # INFO: duplicates are expected client-level outcomes
        logger.info(
            "integrity.duplicate_detected",
            extra={"entity": entity_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            raise DuplicateError(
                f"{entity_part} already exists for field(s): {', '.join(columns)}",
                fields=columns, constraint=constraint_name,
            ) from exc
        raise DuplicateError(f"{entity_part} already exists (unique constraint)", constraint=constraint_name) from exc

    if exc_cls is NotNullConstraintError:
        logger.info(
            "integrity.not_null_violation",
            extra={"entity": entity_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            raise RepositoryError(
                f"Missing required field(s): {', '.join(columns)} for {entity_part}",
                fields=columns, constraint=constraint_name,
            ) from exc
        raise RepositoryError(f"Missing required field for {entity_part}", constraint=constraint_name) from exc

    if exc_cls is ForeignKeyConstraintError:
        logger.info(
            "integrity.foreign_key_violation",
            extra={"entity": entity_part, "fields": columns, "constraint": constraint_name},
        )
        raise RepositoryError(
            f"{entity_part} referenced entity not found", fields=columns, constraint=constraint_name,
        ) from exc

    if exc_cls is CheckConstraintError:
        # the raw DB message stays at DEBUG, callers only see a safe message
        logger.debug(
            "integrity.check_constraint_failure",
            extra={"entity": entity_part, "raw": str(exc.orig), "constraint": constraint_name},
        )
        raise RepositoryError(
            f"{entity_part} business rule violated (check constraint).", constraint=constraint_name,
        ) from exc

    logger.warning("integrity.unknown_error", extra={"entity": entity_part, "constraint": constraint_name})
    raise RepositoryError(f"{entity_part} database integrity error.", constraint=constraint_name) from exc


@asynccontextmanager
async def translate_integrity_errors(entity_name: str | None = None) -> AsyncIterator[None]:
    """
    Usage:
        async with translate_integrity_errors(type(entity).__name__):
            await session.flush()

    Re-raises an IntegrityError as DuplicateError/RepositoryError. Other exceptions
    propagate unchanged.
    """
    try:
        yield
    except IntegrityError as exc:
        raise_mapped_integrity_error(exc, entity_name)
