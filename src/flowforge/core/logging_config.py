"""Centralized logging configuration for FlowForge.

Usage:
    from flowforge.core.logging_config import configure_logging, get_logger

    # Configure once at application startup
    configure_logging(level="DEBUG", format="text")

    # Get loggers in modules
    logger = get_logger(__name__)

Environment Variables:
    FLOWFORGE_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    FLOWFORGE_LOG_FORMAT: Output format ("text" or "json")
    FLOWFORGE_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_FORMAT_WITH_MS = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else was passed via extra=
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)

_configured = False


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging.

    Outputs one object per line:
    {
        "timestamp": "2025-12-28T14:30:00.123000",
        "level": "INFO",
        "logger": "flowforge.transport.live_channel",
        "message": "Live channel open",
        "extra": {...}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    include_ms: bool = True,
    force: bool = False,
) -> None:
    """Configure logging for the application.

    Should be called once at startup. Subsequent calls are ignored
    unless force=True. Arguments left as None fall back to the
    FLOWFORGE_LOG_* environment variables.

    Args:
        level: Log level name. Defaults to FLOWFORGE_LOG_LEVEL or "WARNING".
        format: "text" or "json". Defaults to FLOWFORGE_LOG_FORMAT or "text".
        file_path: Optional log file. Defaults to FLOWFORGE_LOG_FILE.
        include_ms: Include milliseconds in text timestamps.
        force: Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    level = level or os.environ.get("FLOWFORGE_LOG_LEVEL", "WARNING")
    format = format or os.environ.get("FLOWFORGE_LOG_FORMAT", "text")  # type: ignore
    file_path = file_path or os.environ.get("FLOWFORGE_LOG_FILE")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    if format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        fmt = TEXT_FORMAT_WITH_MS if include_ms else TEXT_FORMAT
        formatter = logging.Formatter(fmt, datefmt=DATE_FORMAT)

    # stderr keeps stdout clean for --json output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)
