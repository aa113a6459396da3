# src/crud_data/core/logging/builder.py
"""
Logging builder: create and apply a dictConfig logging configuration from Settings.

 - make_dict_config(settings) builds the mapping (pure, easy to test)
 - setup_logging(settings) creates LOG_DIR when file logging is on and applies it

Handler selection:
| `LOG_TO_STDOUT` | `LOG_DIR` set  | Active handlers                    |
| --------------- | -------------- | ---------------------------------- |
| true            | doesn't matter | console + error_console            |
| false           | not set        | console + error_console            |
| false           | set            | console + file + error_file        |
"""

from __future__ import annotations

from pathlib import Path
import logging
import logging.config

from crud_data.config.settings import Settings
from crud_data.utils.logging import get_project_name

from .formatters import JsonFormatter, ColorFormatter
from .filters import CorrelationIdFilter, RedactFilter
from .handlers import (
    get_console_handler,
    get_file_handler,
    get_error_file_handler,
    get_error_console_handler,
)


def _file_logging_enabled(settings: Settings) -> bool:
    return (not settings.LOG_TO_STDOUT) and bool(settings.LOG_DIR)


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping using the provided settings.

    The returned mapping includes:
      - formatters: "standard" (color in text mode, plain otherwise) and "json"
      - filters: "correlation_id", "redact"
      - handlers: console, plus file/error_file OR error_console depending on LOG_TO_STDOUT
      - loggers: root, crud_data, sqlalchemy.engine
    """
    formatters = {
        "standard": {
            "()": ColorFormatter if settings.LOG_FORMAT == "text" else logging.Formatter,
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(correlation_id)s | %(message)s",
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name(),
        },
    }

    filters = {
        "correlation_id": {"()": CorrelationIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if _file_logging_enabled(settings):
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # our own loggers inherit root handlers; the level is set explicitly so
            # library users can tune it independently of the root
            "crud_data": {
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # Be cautious with SQL logging (statements may contain sensitive data)
            "sqlalchemy.engine": {
                "level": "DEBUG" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Initialize logging from settings.

    Steps:
      1. Ensure LOG_DIR exists when writing files.
      2. Apply dictConfig(make_dict_config(settings)).
      3. Register a CorrelationIdFilter on the root logger as a safety net, so records
         handled by handlers added later still carry `correlation_id`.
    """
    if _file_logging_enabled(settings):
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
    logging.getLogger().addFilter(CorrelationIdFilter())
