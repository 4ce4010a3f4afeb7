"""Base classes for dbbridge components.

This module provides the foundational base classes that the connection
manager and the session facade inherit from, ensuring consistent
configuration handling, health reporting and lifecycle behaviour.

Classes:
    BaseComponent: Generic base class holding a validated configuration
    ManagedComponent: Base class with synchronous initialize/cleanup

Example:
    >>> class Session(ManagedComponent[DbBridgeConfig]):
    ...     def _initialize(self) -> None:
    ...         self.connections.connect(ConnectionRole.PRIMARY)
"""

import threading
import time
from abc import ABC
from typing import Any, ClassVar, Dict, Generic, Optional, TypeVar

import structlog

from .exceptions import (
    ConfigurationError,
    DbBridgeException,
    ValidationError,
)


# Configuration type
T = TypeVar("T")


class BaseComponent(Generic[T], ABC):
    """Base class for all dbbridge components.

    Type Parameters:
        T: Type of configuration object this component accepts

    Attributes:
        component_name: Name of the component for logging and identification
        version: Component version for compatibility checking
    """

    component_name: ClassVar[str] = "BaseComponent"
    version: ClassVar[str] = "1.0.0"

    def __init__(self, config: T) -> None:
        """Initialize base component.

        Args:
            config: Configuration object for this component

        Raises:
            ValidationError: If configuration is None
            ConfigurationError: If configuration is invalid
        """
        if config is None:
            raise ValidationError(
                "Configuration cannot be None",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )

        self._config: T = config
        self._initialized: bool = False
        self._creation_time: float = time.time()
        self._logger = structlog.get_logger(self.__class__.__name__)

        if not self.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.component_name}",
                code="CONFIG_INVALID",
                context={"component": self.component_name},
            )

    @property
    def config(self) -> T:
        """Get component configuration."""
        return self._config

    @property
    def is_initialized(self) -> bool:
        """Check if component is initialized."""
        return self._initialized

    @property
    def uptime(self) -> float:
        """Get component uptime in seconds."""
        return time.time() - self._creation_time

    def validate_config(self) -> bool:
        """Validate component configuration.

        Subclasses override this to implement component-specific checks.

        Returns:
            True if configuration is valid
        """
        return self._config is not None

    def get_health_status(self) -> Dict[str, Any]:
        """Get component health status.

        Returns:
            Dictionary containing component health information
        """
        return {
            "component": self.component_name,
            "version": self.version,
            "initialized": self._initialized,
            "uptime_seconds": self.uptime,
            "status": "healthy" if self._initialized else "not_initialized",
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.component_name!r}, "
            f"initialized={self._initialized}, "
            f"uptime={self.uptime:.2f}s)"
        )


class ManagedComponent(BaseComponent[T]):
    """Base class for components owning external resources.

    Provides idempotent, lock-guarded initialization and cleanup. Subclasses
    implement ``_initialize`` and ``_cleanup``; the public methods take care
    of state tracking, logging and wrapping unexpected failures.
    """

    def __init__(self, config: T) -> None:
        super().__init__(config)
        self._lifecycle_lock = threading.RLock()

    def initialize(self) -> None:
        """Initialize component resources.

        Raises:
            DbBridgeException: If initialization fails
        """
        with self._lifecycle_lock:
            if self._initialized:
                return

            self._logger.info("Initializing component", component=self.component_name)
            try:
                self._initialize()
            except DbBridgeException:
                self._logger.error("Component initialization failed", component=self.component_name)
                raise
            except Exception as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=str(e),
                )
                raise DbBridgeException(
                    f"Failed to initialize {self.component_name}",
                    code="INIT_FAILED",
                    context={"component": self.component_name},
                    cause=e,
                ) from e

            self._initialized = True
            self._logger.info("Component initialized successfully", component=self.component_name)

    def cleanup(self) -> None:
        """Release component resources. Safe to call repeatedly."""
        with self._lifecycle_lock:
            if not self._initialized:
                return

            self._logger.info("Cleaning up component", component=self.component_name)
            try:
                self._cleanup()
            finally:
                self._initialized = False

    def _initialize(self) -> None:
        """Acquire resources. Override in subclasses."""
        pass

    def _cleanup(self) -> None:
        """Release resources. Override in subclasses."""
        pass

    def __enter__(self) -> "ManagedComponent[T]":
        self.initialize()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Optional[Any]) -> None:
        self.cleanup()
