"""dbbridge exception hierarchy.

This module defines the exception hierarchy for dbbridge operations,
providing structured error handling with context and error codes so that
callers can tell fatal connection problems apart from recoverable
statement failures.

Classes:
    DbBridgeException: Base exception for all dbbridge operations
    ConfigurationError: Configuration related errors
    ValidationError: Invalid configuration values or call arguments
    ConnectionError: Database connection errors
    DatabaseConnectionError: A connection role could not be established
    QueryError: A statement failed on the server
    MetadataError: Table or column metadata could not be retrieved

Example:
    >>> try:
    ...     dbi.query("SELECT * FROM missing")
    ... except QueryError as e:
    ...     logger.error("Query failed", error_code=e.code, errno=e.errno)
"""

from typing import Any, Dict, Optional


class DbBridgeException(Exception):
    """Base exception for all dbbridge operations.

    Attributes:
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise DbBridgeException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"role": "primary", "database": "test"}
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        """Initialize dbbridge exception.

        Args:
            message: Human-readable error description
            code: Unique error code for categorization (defaults to class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[Exception] = cause

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation of the exception."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(DbBridgeException):
    """Configuration related errors.

    Raised when configuration is invalid, missing, or cannot be processed.
    """
    pass


class ValidationError(ConfigurationError):
    """Data validation errors.

    Raised when configuration values or call arguments fail validation,
    e.g. an unknown sort column handed to the metadata service.
    """
    pass


class ConnectionError(DbBridgeException):
    """Database connection related errors.

    Base class for all problems establishing or using a connection role.
    """
    pass


class DatabaseConnectionError(ConnectionError):
    """Database connection establishment errors.

    Raised when a connection role's driver handle cannot be created. This
    is fatal for the calling request.
    """
    pass


class QueryError(DbBridgeException):
    """SQL statement execution errors.

    Raised by non-"try" execution paths when the server rejects a
    statement. The message is the classified, user-facing text.

    Attributes:
        errno: Server error number reported by the driver (0 if unknown)
    """

    def __init__(
        self,
        message: str,
        *,
        errno: int = 0,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, code=code, context=context, cause=cause)
        self.errno: int = errno

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["errno"] = self.errno
        return data


class MetadataError(QueryError):
    """Database metadata retrieval errors.

    Raised when neither the information_schema catalog nor the legacy
    introspection commands could produce the requested metadata, or when
    the driver cannot describe result columns.
    """
    pass


# Error code constants for common scenarios
class ErrorCodes:
    """Common error codes for dbbridge exceptions."""

    # Configuration errors
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"

    # Connection errors
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    CREDENTIALS_MISSING = "CREDENTIALS_MISSING"
    NOT_CONNECTED = "NOT_CONNECTED"

    # Execution errors
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"

    # Metadata errors
    METADATA_UNAVAILABLE = "METADATA_UNAVAILABLE"
    FIELD_METADATA_UNSUPPORTED = "FIELD_METADATA_UNSUPPORTED"


def create_error_from_exception(
    exc: Exception,
    message: Optional[str] = None,
    code: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
) -> DbBridgeException:
    """Create dbbridge exception from generic exception.

    Args:
        exc: Original exception to convert
        message: Override message (uses original if not provided)
        code: Error code to assign
        context: Additional context information

    Returns:
        Appropriate dbbridge exception type

    Example:
        >>> try:
        ...     sock.connect(address)
        ... except ConnectionRefusedError as e:
        ...     raise create_error_from_exception(
        ...         e,
        ...         code=ErrorCodes.CONNECTION_REFUSED,
        ...         context={"host": "localhost", "port": 3306}
        ...     )
    """
    error_message = message or str(exc)
    error_context = context or {}

    exception_mapping = {
        ConnectionRefusedError: DatabaseConnectionError,
        ValueError: ValidationError,
        TypeError: ValidationError,
    }

    exception_class = exception_mapping.get(type(exc), DbBridgeException)

    return exception_class(
        error_message,
        code=code,
        context=error_context,
        cause=exc,
    )
