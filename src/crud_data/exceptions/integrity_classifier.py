"""
Classification of SQLAlchemy `IntegrityError`s into constraint-specific kinds.

The classes below are internal labels: the SQLAlchemy backend adapter uses them to decide
which public error (`DuplicateError`, `RepositoryError`) to raise. They are never raised
to callers directly.
"""
import logging
from enum import Enum
from typing import Type

from sqlalchemy.exc import IntegrityError

from .base import RepositoryError

logger = logging.getLogger(__name__)

# =================================================================================================================
# Constraint-specific exceptions
# =================================================================================================================


class ConstraintViolationError(RepositoryError):
    """Base for integrity/constraint violations."""


class UniqueConstraintError(ConstraintViolationError):
    """Unique constraint / duplicate value."""


class NotNullConstraintError(ConstraintViolationError):
    """NOT NULL violation (missing required field)."""


class ForeignKeyConstraintError(ConstraintViolationError):
    """Foreign key constraint violated."""


class CheckConstraintError(ConstraintViolationError):
    """CHECK constraint violated."""


class UnknownIntegrityError(ConstraintViolationError):
    """Unrecognized integrity error."""


# =================================================================================================================
# Postgres error code mapping
# =================================================================================================================

# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_EXCEPTION_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: UniqueConstraintError,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: NotNullConstraintError,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ForeignKeyConstraintError,
    PostgresErrorCodes.CHECK_VIOLATION.value: CheckConstraintError,
}

# Lower-cased message fragments, checked in order, for drivers without SQLSTATE codes (SQLite, MySQL).
MESSAGE_KEYWORDS: list[tuple[Type[ConstraintViolationError], list[str]]] = [
    (UniqueConstraintError, ["unique constraint", "unique failed", "unique violation", "duplicate"]),
    (NotNullConstraintError, ["not null constraint", "not null", "null value in column"]),
    (ForeignKeyConstraintError, ["foreign key constraint", "foreign key", "is not present in table"]),
    (CheckConstraintError, ["check constraint", "check failed"]),
]


# =================================================================================================================
# Integrity Error Classifiers
# =================================================================================================================

def _classify_from_postgres_diag(orig) -> tuple[Type[ConstraintViolationError] | None, str | None]:
    """
    Classify a Postgres integrity error from its SQLSTATE code and diagnostics.
    Returns (None, None) when the driver error carries no pgcode.
    """
    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if not pgcode:
        return None, None

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag else None

    exception_class = PGCODE_EXCEPTION_MAP.get(pgcode)
    if exception_class:
        logger.debug(
            "integrity.postgres_diagnostic",
            extra={"pgcode": pgcode, "constraint_name": constraint_name},
        )
        return exception_class, constraint_name

    logger.warning(
        "integrity.unknown_pgcode",
        extra={"pgcode": pgcode, "constraint_name": constraint_name},
    )
    return UnknownIntegrityError, constraint_name


def _classify_from_generic_message(msg: str) -> tuple[Type[ConstraintViolationError], None]:
    """
    Classify an integrity error from its message text (fallback for SQLite, MySQL, etc).
    """
    normalized = (msg or "").lower()

    for exception_class, keywords in MESSAGE_KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            return exception_class, None

    # Unknown message: warn so it surfaces to monitoring, keep the raw text at DEBUG only
    logger.warning("integrity.unknown_message", extra={"message_snippet": (msg or "")[:200]})
    logger.debug("integrity.unknown_message_raw", extra={"raw": msg})
    return UnknownIntegrityError, None


def classify_integrity_error(exc: IntegrityError) -> tuple[Type[ConstraintViolationError], str | None]:
    """
    Heuristically classify a SQLAlchemy IntegrityError into a ConstraintViolationError subclass.

    Returns:
        A tuple of (ExceptionClass, constraint_name if available)
    """
    orig = exc.orig

    exception_class, constraint_name = _classify_from_postgres_diag(orig)
    if exception_class is not None:
        return exception_class, constraint_name

    return _classify_from_generic_message(str(orig) if orig is not None else str(exc))
