# src/crud_data/core/logging/formatters.py

"""
Custom logging formatters.

  - JsonFormatter: structured JSON logs for log collectors (ELK, Fluentd, CloudWatch, ...).
    Never raises on non-serializable extras; adds service, env, version and correlation_id.

  - ColorFormatter: compact, ANSI-colored lines for local development consoles.

The builder (dictConfig) picks one of them based on settings.LOG_FORMAT.

Repository and service code log structured events such as `repo.create.success` with
their context in `extra={...}`; JsonFormatter turns those extras into top-level keys.
"""

import json
import logging
from typing import Any
from logging import LogRecord
from crud_data.utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# LogRecord attributes that are either part of the canonical payload or pure noise
_SKIPPED_RECORD_KEYS = frozenset({
    "args", "msg", "levelname", "levelno", "name", "exc_info", "exc_text", "stack_info",
    "created", "msecs", "relativeCreated", "thread", "threadName", "processName", "process",
    "taskName", "filename", "module", "funcName",
})


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name (e.g., "development" | "production"); optional.
      - service: logical service name to include in logs.
      - datefmt: optional date format passed to logging.Formatter (used by formatTime).
    """

    def __init__(self, *, env: str | None = None, service: str = "crud-data", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        """
        Format a LogRecord into a JSON string.

        Steps:
          1. Build the canonical fields.
          2. Add exception and stack info if present.
          3. Collect extras (attributes attached via `extra={...}`).
          4. Convert non-serializable extras to strings.
        """
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for k, v in record.__dict__.items():
            if k in log_record or k.startswith("_") or k in _SKIPPED_RECORD_KEYS:
                continue
            try:
                json.dumps(v)
                log_record[k] = v
            except (TypeError, ValueError):
                log_record[k] = str(v)

        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter.

    Line shape: TIMESTAMP | LEVEL | LOGGER | CORRELATION_ID | MESSAGE, with the level
    colorized and the traceback appended when exc_info is set.
    """

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",   # bold cyan on white
        "INFO": "\033[32m",         # green
        "WARNING": "\033[33m",      # yellow
        "ERROR": "\033[31m",        # red
        "CRITICAL": "\033[1;41m",   # bold on red background
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        # reset right after the level so the color doesn't spill into the rest of the line
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<10}{reset} | "
            f"{record.name:<30} | "
            f"{getattr(record, 'correlation_id', '-'):<10} | "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
