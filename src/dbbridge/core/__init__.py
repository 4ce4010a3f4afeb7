"""dbbridge core infrastructure.

This package provides the foundational pieces shared by the rest of the
system: base component classes, the exception hierarchy and utilities.

Modules:
    base: Base component classes
    exceptions: Exception hierarchy
    utils: Utility functions

Example:
    >>> from dbbridge.core import ManagedComponent
    >>> from dbbridge.core.exceptions import QueryError
    >>> from dbbridge.core.utils import SqlUtils
"""

from .base import (
    BaseComponent,
    ManagedComponent,
)
from .exceptions import (
    ConfigurationError,
    ConnectionError,
    DatabaseConnectionError,
    DbBridgeException,
    ErrorCodes,
    MetadataError,
    QueryError,
    ValidationError,
    create_error_from_exception,
)
from .utils import (
    SortUtils,
    SqlUtils,
    ValidationUtils,
)

__all__ = [
    # Base classes
    "BaseComponent",
    "ManagedComponent",

    # Exceptions
    "DbBridgeException",
    "ConfigurationError",
    "ValidationError",
    "ConnectionError",
    "DatabaseConnectionError",
    "QueryError",
    "MetadataError",
    "ErrorCodes",
    "create_error_from_exception",

    # Utilities
    "ValidationUtils",
    "SqlUtils",
    "SortUtils",
]
