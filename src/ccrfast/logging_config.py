"""Centralized logging configuration for ccrfast.

Loggers are configured via environment variables or programmatically.
The fast path itself logs only at DEBUG level; build-time events such as
basket calibration fallbacks are reported at INFO or WARNING.
"""

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

# Default logging configuration
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Environment variable names
ENV_LOG_LEVEL = "CCRFAST_LOG_LEVEL"
ENV_LOG_FILE = "CCRFAST_LOG_FILE"
ENV_LOG_FORMAT = "CCRFAST_LOG_FORMAT"
ENV_STRUCTURED_LOGS = "CCRFAST_STRUCTURED_LOGS"
ENV_PERF_LOG_LEVEL = "CCRFAST_PERF_LOG_LEVEL"

ROOT_LOGGER_NAME = "ccrfast"

_RESERVED_RECORD_KEYS = frozenset(
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
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON string representation of the log record
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Fields passed through ``extra=``
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def _resolve_level(level: str | None) -> int:
    level_str = level or os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL
    return getattr(logging, level_str.upper(), logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger inside the ccrfast hierarchy.

    Child loggers propagate to the ``ccrfast`` logger so that a single call
    to :func:`configure_logging` controls every module.

    Args:
        name: Name of the logger (typically __name__ of the calling module)
        level: Optional log level override

    Returns:
        Logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.debug("Schedule built", extra={"events": 12})
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(_resolve_level(level))
    return logger


def configure_logging(
    level: str | None = None,
    log_file: str | None = None,
    console: bool = True,
    structured: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
) -> None:
    """Configure logging for the entire ccrfast package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to environment variable or WARNING.
        log_file: Path to a log file. Defaults to the CCRFAST_LOG_FILE
                 environment variable; no file logging when unset.
        console: Whether to log to console (stdout). Default: True
        structured: Whether to use JSON structured logging. Can also be
                   switched on with CCRFAST_STRUCTURED_LOGS.
        max_bytes: Maximum size of log file before rotation (default: 10MB)
        backup_count: Number of backup log files to keep (default: 5)

    Example:
        >>> configure_logging(level="DEBUG")
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()

    log_level = _resolve_level(level)
    logger.setLevel(log_level)

    use_structured = structured or os.getenv(ENV_STRUCTURED_LOGS, "").lower() in (
        "true",
        "1",
        "yes",
    )

    if use_structured:
        formatter: logging.Formatter = StructuredFormatter(datefmt=DEFAULT_DATE_FORMAT)
    else:
        log_format = os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)
        formatter = logging.Formatter(log_format, datefmt=DEFAULT_DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    log_file_path = log_file or os.getenv(ENV_LOG_FILE)
    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def get_performance_logger(name: str) -> logging.Logger:
    """Get a logger for timing information.

    Performance loggers live under ``ccrfast.performance`` and default to
    DEBUG so they stay silent unless the package level is lowered.

    Args:
        name: Name of the performance logger

    Returns:
        Logger configured for performance monitoring

    Example:
        >>> perf_logger = get_performance_logger("engine")
        >>> perf_logger.debug("Exposure simulated", extra={"duration_ms": 12.5})
    """
    logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.performance.{name}")
    perf_level = os.getenv(ENV_PERF_LOG_LEVEL, "DEBUG")
    logger.setLevel(getattr(logging, perf_level.upper(), logging.DEBUG))
    return logger


def disable_logging() -> None:
    """Disable all ccrfast logging output."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


def enable_logging(level: str | None = None) -> None:
    """Re-enable console logging after :func:`disable_logging`."""
    configure_logging(level=level)


# Sensible defaults without explicit configuration
if not logging.getLogger(ROOT_LOGGER_NAME).handlers:
    configure_logging()
