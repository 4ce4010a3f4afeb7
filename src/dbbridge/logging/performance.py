"""Performance logging for dbbridge operations.

This module provides timing contexts and per-operation aggregates used to
track how long statements and metadata lookups take.

Classes:
    TimingMetrics: A single timing measurement
    OperationStats: Aggregated statistics for one operation
    TimingContext: Context manager for operation timing
    PerformanceLogger: Main performance logging interface

Example:
    >>> perf_logger = PerformanceLogger("executor")
    >>> with perf_logger.measure("query", role="primary") as timer:
    ...     run_statement()
    >>> timer.duration_ms
    1.25
"""

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

from .structured import StructuredLogger


@dataclass
class TimingMetrics:
    """Metrics for a single timing measurement."""
    operation: str
    start_time: float
    end_time: Optional[float] = None
    duration: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None

    def complete(self, success: bool = True, error: Optional[str] = None) -> None:
        """Mark timing as complete."""
        self.end_time = time.perf_counter()
        self.duration = self.end_time - self.start_time
        self.success = success
        self.error = error

    @property
    def duration_ms(self) -> Optional[float]:
        return self.duration * 1000 if self.duration is not None else None

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None


@dataclass
class OperationStats:
    """Aggregated performance statistics for an operation."""
    operation: str
    total_calls: int = 0
    failed_calls: int = 0
    total_duration: float = 0.0
    min_duration: Optional[float] = None
    max_duration: Optional[float] = None

    def add_timing(self, timing: TimingMetrics) -> None:
        """Fold a completed timing into the aggregate."""
        if not timing.is_complete or timing.duration is None:
            return

        self.total_calls += 1
        if not timing.success:
            self.failed_calls += 1

        duration = timing.duration
        self.total_duration += duration
        if self.min_duration is None or duration < self.min_duration:
            self.min_duration = duration
        if self.max_duration is None or duration > self.max_duration:
            self.max_duration = duration

    @property
    def avg_duration(self) -> Optional[float]:
        if self.total_calls == 0:
            return None
        return self.total_duration / self.total_calls

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "total_calls": self.total_calls,
            "failed_calls": self.failed_calls,
            "total_duration": self.total_duration,
            "min_duration": self.min_duration,
            "max_duration": self.max_duration,
            "avg_duration": self.avg_duration,
        }


class TimingContext:
    """Context manager for measuring operation timing.

    Logs a debug event on completion and an error event when the block
    raises. The exception itself is never suppressed.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operation = operation
        self.logger = logger
        self.metadata = metadata or {}
        self._timing: Optional[TimingMetrics] = None

    @property
    def timing(self) -> Optional[TimingMetrics]:
        return self._timing

    @property
    def duration(self) -> Optional[float]:
        """Duration in seconds, or None if not completed."""
        return self._timing.duration if self._timing else None

    @property
    def duration_ms(self) -> Optional[float]:
        return self._timing.duration_ms if self._timing else None

    def __enter__(self) -> "TimingContext":
        self._timing = TimingMetrics(
            operation=self.operation,
            start_time=time.perf_counter(),
            metadata=self.metadata,
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._timing is None:
            return

        success = exc_type is None
        error = str(exc_val) if exc_val else None
        self._timing.complete(success=success, error=error)

        if self.logger is None:
            return
        if success:
            self.logger.debug(
                "Operation completed",
                operation=self.operation,
                duration_ms=self._timing.duration_ms,
                **self.metadata,
            )
        else:
            self.logger.error(
                "Operation failed",
                operation=self.operation,
                duration_ms=self._timing.duration_ms,
                error=error,
                **self.metadata,
            )


class PerformanceLogger:
    """Performance logger tracking per-operation timings.

    Example:
        >>> perf_logger = PerformanceLogger("metadata")
        >>> with perf_logger.measure("get_tables_full", database="test"):
        ...     service.get_tables_full("test")
        >>> perf_logger.get_metrics("get_tables_full").total_calls
        1
    """

    def __init__(
        self,
        name: str,
        *,
        auto_log: bool = True,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.name = name
        self.auto_log = auto_log
        self.logger = logger or StructuredLogger(f"perf.{name}")
        self._metrics: Dict[str, OperationStats] = defaultdict(
            lambda: OperationStats(operation="unknown")
        )

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Generator[TimingContext, None, None]:
        """Time the enclosed block and fold the result into the aggregates."""
        timing_context = TimingContext(
            operation=operation,
            logger=self.logger if self.auto_log else None,
            metadata=metadata,
        )
        try:
            with timing_context as ctx:
                yield ctx
        finally:
            if timing_context.timing:
                stats = self._metrics[operation]
                stats.operation = operation
                stats.add_timing(timing_context.timing)

    def get_metrics(self, operation: str) -> OperationStats:
        """Return the aggregate for ``operation`` (empty if never measured)."""
        if operation not in self._metrics:
            return OperationStats(operation=operation)
        return self._metrics[operation]

    def reset_metrics(self, operation: Optional[str] = None) -> None:
        """Reset aggregates for one operation or all of them."""
        if operation is None:
            self._metrics.clear()
        else:
            self._metrics.pop(operation, None)

    def get_summary(self) -> Dict[str, Any]:
        return {name: stats.to_dict() for name, stats in self._metrics.items()}

    def __repr__(self) -> str:
        return f"PerformanceLogger(name={self.name!r}, operations={len(self._metrics)})"
