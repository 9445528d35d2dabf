"""
Module: logger.py
Description: Structured logging configuration for eventrelay.

Configures structlog for JSON line output. Provides consistent logging
across all modules with proper context and structured data.

Key Components:
- JSON output, one object per line
- Timestamp and log level processors
- Level filtering driven by settings.log_level
- Optional append-only log file (settings.log_file)
- get_logger() helper function

Dependencies: structlog, datetime
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Optional, TextIO

import structlog

from eventrelay.config.settings import settings

_log_stream: Optional[TextIO] = None


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """
    Add log level to event dictionary.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with level
    """
    event_dict["level"] = "WARNING" if method_name == "warn" else method_name.upper()
    return event_dict


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure structlog for JSON output.

    Calling it again replaces the previous configuration, closing a log
    file opened by an earlier call.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Append to this file instead of writing to stdout
    """
    global _log_stream

    if _log_stream is not None:
        _log_stream.close()
        _log_stream = None

    if log_file:
        _log_stream = open(log_file, "a", encoding="utf-8")
        stream = _log_stream
    else:
        stream = sys.stdout

    structlog.configure(
        processors=[
            # Add timestamp and log level
            _add_timestamp,
            _add_log_level,
            # Add exception information
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.WriteLoggerFactory(file=stream),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        # Module-level loggers must follow later configure_logging() calls
        cache_logger_on_first_use=False,
    )


configure_logging(settings.log_level, settings.log_file)


def get_logger(name: str) -> structlog.typing.FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Event cached", url="https://collector.example.com/e")
        {"url": "https://collector.example.com/e", "event": "Event cached", "timestamp": "2026-01-15T10:30:00Z", "level": "INFO"}
    """
    return structlog.get_logger(name)
