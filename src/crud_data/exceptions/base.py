"""
Custom exceptions for repository and service operations.

Every error raised by the persistence layer derives from `RepositoryError`, so callers
can catch a single type at their boundary and still branch on `error_code` when they
need to (e.g. an HTTP layer turning `not_found` into a 404).
"""

from typing import Any, Iterable

# canonical repository-level exception

class RepositoryError(Exception):
    """
    Base exception for repository/service errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['email'])
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'duplicate', 'not_found') used by clients
    """

    # Map canonical error_code -> default HTTP status for the surrounding application.
    ERROR_CODE_TO_STATUS = {
        "duplicate": 409,
        "invalid_field": 422,
        "not_found": 404,
        "invalid_input": 422,
        "misconfigured": 500,
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for API responses.

        Standard shape:
            {
                "detail": "A human-friendly message",
                "code": "not_found",           # optional canonical code
                "fields": ["username"],        # optional list for client usage
            }
        The `constraint` value is deliberately left out of the payload.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        """
        Return the HTTP status code that should accompany this error.
        Unknown or missing codes fall back to 400 (Bad Request).
        """
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class ObjectNotFoundError(RepositoryError):
    """
    Raised when a lookup by primary key (or a required existence check) finds nothing.

    Carries the entity type name and the key that was used, so callers can report
    exactly which record was missing.
    """

    def __init__(self, entity_type: str | None = None, object_id: Any = None, *, message: str | None = None):
        if message is None:
            message = f"Object with type = '{entity_type}' by id = '{object_id}' is not found"
        super().__init__(message, error_code="not_found")
        self.entity_type = entity_type
        self.object_id = object_id

    @classmethod
    def from_message(cls, message: str) -> "ObjectNotFoundError":
        return cls(message=message)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.entity_type is not None:
            payload["entity"] = self.entity_type
        if self.object_id is not None:
            payload["id"] = str(self.object_id)
        return payload


class InvalidArgumentError(RepositoryError, ValueError):
    """Raised when a required argument (id, object, field name/value) is absent."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_input")


class RepositoryConfigurationError(RepositoryError):
    """Raised at construction time when a repository cannot be assembled."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="misconfigured")


class DuplicateError(RepositoryError):
    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        # canonical error_code 'duplicate' so http_status() -> 409
        super().__init__(message, fields=fields, constraint=constraint, error_code="duplicate")


class InvalidFieldError(RepositoryError):
    """Raised when the caller queries by a field the entity type does not declare."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


def require_not_none(value: Any, name: str) -> Any:
    """
    Return `value` unchanged, or raise InvalidArgumentError when it is None.

    Used at the top of every public operation so the check happens before any
    backend call is made.
    """
    if value is None:
        raise InvalidArgumentError(f"Argument '{name}' must not be None", fields=[name])
    return value


__all__ = [
    "RepositoryError",
    "ObjectNotFoundError",
    "InvalidArgumentError",
    "RepositoryConfigurationError",
    "DuplicateError",
    "InvalidFieldError",
    "require_not_none",
]
