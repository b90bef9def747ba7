"""
Structured JSON logging for production observability.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

# Standard LogRecord attributes, never copied into "extra"
_STANDARD_ATTRS: frozenset[str] = frozenset(
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

VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs logs as JSON.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).strftime("%Y-%m-%d %H:%M:%S")

        log_data: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {key: value for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def setup_logging(level: str, service_name: str) -> logging.Logger:
    """
    Configure structured JSON logging for the service.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Name of the service for logger identification

    Returns:
        Configured logger instance

    Raises:
        ValueError: If level is not a valid log level
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {sorted(VALID_LOG_LEVELS)}")

    numeric_level = getattr(logging, level_upper)

    logger = logging.getLogger(service_name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_service_logger(service_name: str) -> logging.Logger:
    """
    Get root logger for a service.

    Args:
        service_name: Base service logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(service_name)


def get_named_logger(service_name: str, logger_name: str) -> logging.Logger:
    """
    Get a named logger under a service namespace.

    Args:
        service_name: Base service logger name
        logger_name: Module or component name

    Returns:
        Logger instance
    """
    return logging.getLogger(f"{service_name}.{logger_name}")


class RequestLogger(logging.LoggerAdapter):  # type: ignore[type-arg]
    """
    Logger bound to one proxied request.

    Bound fields (request id, method, path, route group) are merged into
    the ``extra`` of every record; per-call ``extra`` wins on conflicts.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs

    def bind(self, **fields: Any) -> RequestLogger:
        """Return a new adapter with additional bound fields."""
        return RequestLogger(self.logger, {**(self.extra or {}), **fields})


def bind_request_logger(logger: logging.Logger, request_id: str, **fields: Any) -> RequestLogger:
    """
    Bind request fields to a logger.

    Args:
        logger: Component logger
        request_id: Identifier shared by every log line of one request
        **fields: Further fields to bind (method, path, ...)

    Returns:
        Adapter that adds the bound fields to every record
    """
    return RequestLogger(logger, {"request_id": request_id, **fields})
