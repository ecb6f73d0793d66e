"""Logging configuration with JSON formatting."""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from src.config import settings

# Third-party loggers that are chatty at INFO inside Lambda
_NOISY_LOGGERS = ("botocore", "aiobotocore", "httpx", "httpcore")


class JSONFormatter(logging.Formatter):
    """
    Formatter that renders each log record as one JSON line.

    Fields:
    - timestamp: ISO 8601 timestamp in UTC
    - level: Log level name
    - logger: Logger name
    - message: Log message
    - correlation_id: Request correlation ID (if passed in extra)
    - everything in the `context` extra dict, merged at top level
    - exception: formatted traceback, when exc_info is set
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "correlation_id"):
            log_data["correlation_id"] = record.correlation_id

        if hasattr(record, "context"):
            log_data.update(record.context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno == logging.DEBUG:
            log_data["file"] = record.pathname
            log_data["line"] = record.lineno
            log_data["function"] = record.funcName

        # default=str keeps datetimes and sets from breaking a log line
        return json.dumps(log_data, default=str)


def configure_logging() -> None:
    """
    Configure the root logger to emit JSON lines on stdout.

    Level comes from LOG_LEVEL. Safe to call more than once (Lambda
    reuses the process between invocations).
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    root_logger.info(
        "Logging configured",
        extra={"context": {"log_level": settings.log_level}},
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: The name of the logger (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
