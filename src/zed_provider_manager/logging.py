"""Logging utilities for the provider manager.

This module provides standardized logging functionality for fetch, resolve
and patch operations.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

# Root logger name for the package
LOGGER_NAME = "zed_provider_manager"

# Type for log callback functions
LogCallback = Callable[[int, str, Dict[str, Any]], None]


class LogLevel(int, Enum):
    """Log levels for the provider manager."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


class LogEvent(str, Enum):
    """Event types for provider-manager logging."""

    REGISTRY_FETCH = "registry_fetch"
    MODEL_FETCH = "model_fetch"
    CAPABILITY_RESOLUTION = "capability_resolution"
    SETTINGS_IO = "settings_io"
    DOCUMENT_PATCH = "document_patch"
    PROVIDER_UPDATE = "provider_update"


_callback: Optional[LogCallback] = None


def get_logger(name: str) -> logging.Logger:
    """Get a logger nested under the package namespace.

    Args:
        name: Module or component name

    Returns:
        Logger instance
    """
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_log_callback(callback: Optional[LogCallback]) -> None:
    """Register a callback that receives every event in addition to logging.

    Args:
        callback: Function called with (level, event, data), or None to remove
    """
    global _callback
    _callback = callback


def _log(level: LogLevel, event: LogEvent, message: str, data: Dict[str, Any]) -> None:
    """Log an event to the package logger and the optional callback.

    Args:
        level: Severity level
        event: Event type
        message: Human readable message
        data: Dictionary of event data
    """
    get_logger(LOGGER_NAME).log(level, message, extra={"event": event.value, "data": data})

    if _callback is None:
        return
    try:
        _callback(level, event.value, {"message": message, **data})
    except Exception as e:
        # Fallback to standard logging if callback fails
        logging.error(
            f"Logging callback failed with error: {e}. Original log: "
            f"level={level}, event={event}, data={data}"
        )


def log_debug(event: LogEvent, message: str, **data: Any) -> None:
    """Log a debug-level event."""
    _log(LogLevel.DEBUG, event, message, data)


def log_info(event: LogEvent, message: str, **data: Any) -> None:
    """Log an info-level event."""
    _log(LogLevel.INFO, event, message, data)


def log_warning(event: LogEvent, message: str, **data: Any) -> None:
    """Log a warning-level event."""
    _log(LogLevel.WARNING, event, message, data)


def log_error(event: LogEvent, message: str, **data: Any) -> None:
    """Log an error-level event."""
    _log(LogLevel.ERROR, event, message, data)
