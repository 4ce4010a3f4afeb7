"""dbbridge structured logging framework.

This package provides structured logging on top of structlog together
with timing helpers for statements and metadata lookups.

Classes:
    StructuredLogger: Main structured logging interface
    PerformanceLogger: Performance monitoring and timing
    LoggerFactory: Logger creation and configuration

Example:
    >>> from dbbridge.logging import get_logger, get_performance_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Connected", role="primary")
    >>>
    >>> perf_logger = get_performance_logger("executor")
    >>> with perf_logger.measure("query"):
    ...     pass
"""

from .factory import (
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
    shutdown_logging,
)
from .performance import OperationStats, PerformanceLogger, TimingContext, TimingMetrics
from .structured import LogContext, StructuredLogger

__all__ = [
    # Factory and configuration
    "LoggerFactory",
    "configure_logging",
    "get_factory",
    "get_logger",
    "get_performance_logger",
    "shutdown_logging",

    # Performance logging
    "PerformanceLogger",
    "TimingContext",
    "TimingMetrics",
    "OperationStats",

    # Structured logging
    "StructuredLogger",
    "LogContext",
]
