"""Unit tests for the dbbridge exception hierarchy.

This module tests the exception classes and error handling utilities
to ensure proper error reporting and context management.
"""

import pytest

from dbbridge.core.exceptions import (
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


class TestDbBridgeException:
    """Test base dbbridge exception class."""

    def test_basic_exception_creation(self):
        """Test basic exception creation with message only."""
        exc = DbBridgeException("Test error message")

        assert str(exc) == "DbBridgeException: Test error message"
        assert exc.message == "Test error message"
        assert exc.code == "DbBridgeException"
        assert exc.context == {}
        assert exc.cause is None

    def test_exception_with_custom_code(self):
        """Test exception creation with custom error code."""
        exc = DbBridgeException("Test error", code="CUSTOM_ERROR")

        assert exc.code == "CUSTOM_ERROR"
        assert str(exc) == "CUSTOM_ERROR: Test error"

    def test_exception_with_context_and_cause(self):
        """Test exception creation with context and cause."""
        original_error = ValueError("Original error")
        context = {"role": "primary", "database": "test"}
        exc = DbBridgeException("Wrapped error", context=context, cause=original_error)

        assert exc.context == context
        assert exc.cause is original_error

    def test_exception_to_dict(self):
        """Test exception serialization to dictionary."""
        exc = DbBridgeException(
            "Test message",
            code="TEST_CODE",
            context={"test_key": "test_value"},
            cause=ValueError("Original"),
        )

        result = exc.to_dict()

        assert result["error_type"] == "DbBridgeException"
        assert result["message"] == "Test message"
        assert result["code"] == "TEST_CODE"
        assert result["context"] == {"test_key": "test_value"}
        assert result["cause"] == "Original"

    def test_exception_repr(self):
        """Test exception string representation."""
        exc = DbBridgeException("Test message", code="TEST_CODE", context={"key": "value"})

        repr_str = repr(exc)

        assert "DbBridgeException" in repr_str
        assert "Test message" in repr_str
        assert "TEST_CODE" in repr_str
        assert "{'key': 'value'}" in repr_str


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    def test_validation_error_inheritance(self):
        """Test ValidationError inherits from ConfigurationError."""
        exc = ValidationError("Validation failed")

        assert isinstance(exc, DbBridgeException)
        assert isinstance(exc, ConfigurationError)
        assert exc.code == "ValidationError"

    def test_connection_error_inheritance(self):
        """Test connection error hierarchy."""
        exc = DatabaseConnectionError("DB connection failed")

        assert isinstance(exc, ConnectionError)
        assert isinstance(exc, DbBridgeException)

    def test_query_error_carries_errno(self):
        """Test QueryError keeps the server error number."""
        exc = QueryError("#1146 - Table doesn't exist", errno=1146, code=ErrorCodes.QUERY_EXECUTION_FAILED)

        assert exc.errno == 1146
        assert exc.to_dict()["errno"] == 1146
        assert exc.code == "QUERY_EXECUTION_FAILED"

    def test_metadata_error_is_query_error(self):
        """Test metadata failures surface as query errors."""
        exc = MetadataError("No metadata")

        assert isinstance(exc, QueryError)
        assert exc.errno == 0

    def test_exceptions_can_be_raised_and_caught(self):
        """Test catching a subclass through its base class."""
        with pytest.raises(DbBridgeException) as exc_info:
            raise MetadataError("Catalog unavailable", code=ErrorCodes.METADATA_UNAVAILABLE)

        assert exc_info.value.code == ErrorCodes.METADATA_UNAVAILABLE


class TestErrorCodes:
    """Test error code constants."""

    def test_error_codes_are_uppercase_strings(self):
        """Test that error codes follow the uppercase string convention."""
        for name in (
            "CONFIG_INVALID",
            "INVALID_ARGUMENT",
            "CONNECTION_REFUSED",
            "CONNECTION_FAILED",
            "CREDENTIALS_MISSING",
            "NOT_CONNECTED",
            "QUERY_EXECUTION_FAILED",
            "METADATA_UNAVAILABLE",
            "FIELD_METADATA_UNSUPPORTED",
        ):
            value = getattr(ErrorCodes, name)
            assert isinstance(value, str)
            assert value.isupper()
            assert value == name


class TestCreateErrorFromException:
    """Test error creation utility function."""

    def test_create_from_connection_refused_error(self):
        """Test creating a dbbridge error from ConnectionRefusedError."""
        original = ConnectionRefusedError("Connection refused")
        context = {"host": "localhost", "port": 3306}

        result = create_error_from_exception(
            original,
            code=ErrorCodes.CONNECTION_REFUSED,
            context=context,
        )

        assert isinstance(result, DatabaseConnectionError)
        assert result.code == ErrorCodes.CONNECTION_REFUSED
        assert result.context == context
        assert result.cause is original
        assert "Connection refused" in str(result)

    def test_create_from_value_error(self):
        """Test creating a validation error from ValueError."""
        result = create_error_from_exception(ValueError("bad value"), message="Invalid port")

        assert isinstance(result, ValidationError)
        assert result.message == "Invalid port"

    def test_create_from_unknown_exception(self):
        """Test unknown exception types map to the base class."""
        result = create_error_from_exception(RuntimeError("boom"))

        assert type(result) is DbBridgeException
        assert result.message == "boom"
