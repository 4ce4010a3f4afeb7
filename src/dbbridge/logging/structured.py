"""Structured logging implementation for dbbridge.

This module provides structured logging with context management and
correlation ids on top of structlog.

Classes:
    LogContext: Thread-local context storage
    StructuredLogger: Main structured logging interface

Example:
    >>> logger = StructuredLogger("dbbridge.executor")
    >>> with logger.context(role="primary"):
    ...     logger.info("Statement executed", rows=3)
"""

import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import structlog

from ..core.exceptions import DbBridgeException
from ..core.utils import ValidationUtils


class LogContext:
    """Thread-local context for log correlation and metadata.

    Example:
        >>> context = LogContext()
        >>> context.set("database", "test")
        >>> context.get_all()
        {'database': 'test'}
    """

    def __init__(self) -> None:
        self._local = threading.local()

    def _data(self) -> Dict[str, Any]:
        if not hasattr(self._local, "context"):
            self._local.context = {}
        return self._local.context

    def set(self, key: str, value: Any) -> None:
        """Set context value."""
        self._data()[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get context value or ``default``."""
        return self._data().get(key, default)

    def get_all(self) -> Dict[str, Any]:
        """Get a copy of all context values."""
        return dict(self._data())

    def update(self, context: Dict[str, Any]) -> None:
        """Update context with multiple values."""
        self._data().update(context)

    def clear(self) -> None:
        """Clear all context values."""
        self._data().clear()


class StructuredLogger:
    """Structured logger with context management and correlation.

    Every event carries the logger name, the thread-local context and,
    when enabled, a correlation id that ties together all events of one
    session.

    Attributes:
        name: Logger name
    """

    def __init__(
        self,
        name: str,
        *,
        level: str = "INFO",
        enable_correlation: bool = True,
    ) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (typically module name)
            level: Initial log level
            enable_correlation: Whether to attach correlation ids
        """
        self.name = name
        self._enable_correlation = enable_correlation
        self._logger = structlog.get_logger(name)
        self._context = LogContext()
        self._stdlib_logger = logging.getLogger(name)
        self.set_level(level)

    def _ensure_correlation_id(self) -> str:
        correlation_id = self._context.get("correlation_id")
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
            self._context.set("correlation_id", correlation_id)
        return correlation_id

    def _prepare_event_dict(self, **kwargs: Any) -> Dict[str, Any]:
        event_dict = self._context.get_all()
        if self._enable_correlation:
            event_dict["correlation_id"] = self._ensure_correlation_id()
        event_dict.update(kwargs)
        return event_dict

    @contextmanager
    def context(self, **context_data: Any) -> Generator[None, None, None]:
        """Temporarily add context data to every event logged in the block."""
        old_context = self._context.get_all()
        try:
            self._context.update(context_data)
            yield
        finally:
            self._context.clear()
            self._context.update(old_context)

    def bind(self, **context_data: Any) -> "StructuredLogger":
        """Create a new logger carrying the current context plus ``context_data``."""
        bound_logger = StructuredLogger(
            self.name,
            level=self.get_level(),
            enable_correlation=self._enable_correlation,
        )
        current_context = self._context.get_all()
        current_context.update(context_data)
        bound_logger._context.update(current_context)
        return bound_logger

    def set_level(self, level: str) -> None:
        """Set logging level.

        Raises:
            DbBridgeException: If the level name is unknown
        """
        if not ValidationUtils.validate_identifier(level):
            raise DbBridgeException(f"Invalid log level: {level}", code="INVALID_LOG_LEVEL")

        log_level = getattr(logging, level.upper(), None)
        if not isinstance(log_level, int):
            raise DbBridgeException(f"Unknown log level: {level}", code="UNKNOWN_LOG_LEVEL")

        self._stdlib_logger.setLevel(log_level)

    def get_level(self) -> str:
        """Get current logging level name."""
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **self._prepare_event_dict(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **self._prepare_event_dict(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **self._prepare_event_dict(**kwargs))

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **self._prepare_event_dict(**kwargs))

    def critical(self, message: str, **kwargs: Any) -> None:
        self._logger.critical(message, **self._prepare_event_dict(**kwargs))

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error with the active exception's traceback."""
        self._logger.error(message, exc_info=True, **self._prepare_event_dict(**kwargs))

    def set_correlation_id(self, correlation_id: str) -> None:
        """Set correlation ID for this logger."""
        if self._enable_correlation:
            self._context.set("correlation_id", correlation_id)

    def get_correlation_id(self) -> Optional[str]:
        """Get current correlation ID, or None when correlation is disabled."""
        if not self._enable_correlation:
            return None
        return self._context.get("correlation_id")

    def get_context(self) -> Dict[str, Any]:
        """Get current context data."""
        return self._context.get_all()

    def __repr__(self) -> str:
        return (
            f"StructuredLogger("
            f"name={self.name!r}, "
            f"level={self.get_level()!r}, "
            f"correlation={self._enable_correlation})"
        )
