"""Logger factory and configuration for dbbridge.

This module provides centralized logger creation and configuration of the
standard library and structlog pipelines.

Classes:
    LoggerFactory: Logger factory and configuration manager

Functions:
    configure_logging: Configure logging system globally
    get_logger: Convenience function for getting loggers
    get_performance_logger: Convenience function for performance loggers

Example:
    >>> from dbbridge.logging import get_logger, configure_logging
    >>> configure_logging(level="INFO", format="json")
    >>> logger = get_logger(__name__)
    >>> logger.info("Session started", server="localhost")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from ..config.models import LoggingConfig
from ..core.exceptions import ValidationError
from .performance import PerformanceLogger
from .structured import StructuredLogger


class LoggerFactory:
    """Factory for creating and configuring dbbridge loggers.

    Loggers are cached per name. Creating a logger never reconfigures the
    logging system; that only happens through ``configure``.

    Attributes:
        config: Active logging configuration
        initialized: Whether ``configure`` has run
    """

    def __init__(self, config: Optional[LoggingConfig] = None) -> None:
        self.config = config or LoggingConfig()
        self.initialized = False
        self._loggers: Dict[str, StructuredLogger] = {}
        self._performance_loggers: Dict[str, PerformanceLogger] = {}
        self._handlers: list[logging.Handler] = []

    def configure(self, config: Optional[LoggingConfig] = None) -> None:
        """Configure stdlib handlers and the structlog processor chain.

        Args:
            config: Logging configuration; the current one when omitted
        """
        if config is not None:
            self.config = config

        self._configure_stdlib_logging()
        self._configure_structlog()

        for logger in self._loggers.values():
            logger.set_level(self.config.level)

        self.initialized = True

    def _configure_stdlib_logging(self) -> None:
        level = getattr(logging, self.config.level.upper(), logging.INFO)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)

        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()

        if self.config.console_output:
            self._handlers.append(logging.StreamHandler(sys.stderr))

        if self.config.file_path is not None:
            file_path = Path(self.config.file_path)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            self._handlers.append(
                logging.handlers.RotatingFileHandler(
                    filename=str(file_path),
                    maxBytes=self.config.max_file_size,
                    backupCount=self.config.backup_count,
                )
            )

        for handler in self._handlers:
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter("%(message)s"))
            root_logger.addHandler(handler)

    def _configure_structlog(self) -> None:
        processors: list[Any] = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        if self.config.format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    def get_logger(self, name: str, *, level: Optional[str] = None) -> StructuredLogger:
        """Get or create a structured logger.

        Args:
            name: Logger name (typically module name)
            level: Override default log level

        Returns:
            StructuredLogger instance
        """
        cache_key = f"{name}:{level}"
        if cache_key not in self._loggers:
            self._loggers[cache_key] = StructuredLogger(
                name,
                level=level or self.config.level,
                enable_correlation=self.config.correlation_ids,
            )
        return self._loggers[cache_key]

    def get_performance_logger(self, name: str, *, auto_log: bool = True) -> PerformanceLogger:
        """Get or create a performance logger."""
        cache_key = f"{name}:{auto_log}"
        if cache_key not in self._performance_loggers:
            self._performance_loggers[cache_key] = PerformanceLogger(
                name,
                auto_log=auto_log,
                logger=self.get_logger(f"perf.{name}"),
            )
        return self._performance_loggers[cache_key]

    def set_level(self, level: str) -> None:
        """Set the level of the root logger and every cached logger.

        Raises:
            ValidationError: If the level name is unknown
        """
        if not isinstance(getattr(logging, level.upper(), None), int):
            raise ValidationError(f"Invalid log level: {level}")

        self.config = self.config.update_from_dict({"level": level.upper()})
        for logger in self._loggers.values():
            logger.set_level(level)
        logging.getLogger().setLevel(getattr(logging, level.upper()))

    def shutdown(self) -> None:
        """Detach handlers and forget cached loggers."""
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers.clear()
        self._loggers.clear()
        self._performance_loggers.clear()
        self.initialized = False

    def __repr__(self) -> str:
        return (
            f"LoggerFactory("
            f"level={self.config.level!r}, "
            f"format={self.config.format!r}, "
            f"initialized={self.initialized})"
        )


# Global logger factory instance
_global_factory = LoggerFactory()


def configure_logging(config: Optional[LoggingConfig] = None, **overrides: Any) -> None:
    """Configure dbbridge logging globally.

    Args:
        config: Logging configuration (defaults to the current one)
        **overrides: Individual LoggingConfig fields to override

    Example:
        >>> configure_logging(level="DEBUG", format="text")
    """
    base = config or _global_factory.config
    if overrides:
        base = base.update_from_dict(overrides)
    _global_factory.configure(base)


def get_logger(name: str, *, level: Optional[str] = None) -> StructuredLogger:
    """Get or create a structured logger using the global factory.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Connected", role="primary")
    """
    return _global_factory.get_logger(name, level=level)


def get_performance_logger(name: str, *, auto_log: bool = True) -> PerformanceLogger:
    """Get or create a performance logger using the global factory."""
    return _global_factory.get_performance_logger(name, auto_log=auto_log)


def get_factory() -> LoggerFactory:
    """Get the global logger factory instance."""
    return _global_factory


def shutdown_logging() -> None:
    """Shutdown the global logging system and clean up resources."""
    _global_factory.shutdown()
