# src/crud_data/core/logging/handlers.py
"""
Handler factories for logging.dictConfig.

Each function returns a handler configuration dict. Formatter and filter names refer to
entries the builder registers ("json"/"standard", "correlation_id"/"redact").
"""

from crud_data.config.settings import Settings
from pathlib import Path

_FILTERS = ["correlation_id", "redact"]


def _formatter_name(settings: Settings) -> str:
    return "json" if settings.LOG_FORMAT == "json" else "standard"


def get_console_handler(settings: Settings) -> dict:
    """
    Console/stream handler (stderr by default), at the configured LOG_LEVEL.

    Add "stream": "ext://sys.stdout" to the returned dict to force stdout.
    """
    return {
        "class": "logging.StreamHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filters": _FILTERS,
    }


def get_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": _formatter_name(settings),
        "level": settings.LOG_LEVEL,
        "filename": str(Path(settings.LOG_DIR) / "app.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": _FILTERS,
    }


# Error-only rotating file, kept structured for alerting/archival.
def get_error_file_handler(settings: Settings) -> dict:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "json",
        "level": "ERROR",
        "filename": str(Path(settings.LOG_DIR) / "errors.log"),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
        "encoding": "utf-8",
        "filters": _FILTERS,
    }


def get_error_console_handler(settings: Settings) -> dict:
    return {
        "class": "logging.StreamHandler",
        "formatter": "json",
        "level": "ERROR",
        "filters": _FILTERS,
    }
