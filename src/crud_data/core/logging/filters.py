# src/crud_data/core/logging/filters.py
"""
Logging filters

Correlation ID filter and helpers for logging.

A unit of work (one request, one job, one CLI command) usually performs several
repository and service calls. Setting a correlation id once at the start of that unit
lets every log line it produces be grouped afterwards.

- The id lives in a `contextvars.ContextVar`, so it follows the current asyncio task
  across `await` boundaries (threading.local() would leak between tasks).
- `CorrelationIdFilter` guarantees every LogRecord has a `correlation_id` attribute, so
  formatters referencing `%(correlation_id)s` never KeyError. The fallback is "-".
- The filter always returns True; it only annotates records.

Usage:
    token = set_correlation_id("job-42")
    try:
        await service.create(data)
    finally:
        reset_correlation_id(token)
"""

import logging
from logging import LogRecord
import contextvars

_correlation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str | None):
    """
    Set the correlation id in the current context and return the token to allow reset.
    """
    return _correlation_id_ctx.set(correlation_id)


def reset_correlation_id(token):
    """
    Reset the contextvar to the value it had before the matching set_correlation_id() call.
    """
    _correlation_id_ctx.reset(token)


def get_correlation_id() -> str | None:
    """
    Return the current context's correlation id, or None if none has been set.
    """
    return _correlation_id_ctx.get()


class CorrelationIdFilter(logging.Filter):
    """
    Logging filter that guarantees every LogRecord has a `correlation_id` attribute.

    Precedence:
      1. record.correlation_id, if the caller passed it via `extra`
      2. the contextvar value
      3. the sentinel "-"
    """

    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or get_correlation_id() or "-"
        )
        return True


# Redact sensitive information
class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "hashed_password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}

    def filter(self, record: LogRecord) -> bool:
        # mask attributes on record (set through `extra`) that match SENSITIVE
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = "***REDACTED***"
        return True
