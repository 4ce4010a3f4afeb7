"""Logging-specific test configuration and fixtures."""

import logging
import tempfile
from pathlib import Path

import pytest
import structlog

from dbbridge.config.models import LoggingConfig
from dbbridge.logging.factory import LoggerFactory


@pytest.fixture
def temp_log_file():
    """Create temporary log file for testing."""
    with tempfile.NamedTemporaryFile(suffix=".log", delete=False) as temp_file:
        temp_path = Path(temp_file.name)

    yield temp_path

    # Cleanup
    temp_path.unlink(missing_ok=True)


@pytest.fixture
def sample_logging_config(temp_log_file):
    """Create sample logging configuration."""
    return LoggingConfig(
        level="INFO",
        format="json",
        file_path=temp_log_file,
        console_output=False,
        max_file_size=1048576,  # 1MB
        backup_count=3,
    )


@pytest.fixture
def logger_factory():
    """Create clean logger factory for testing."""
    factory = LoggerFactory()
    yield factory
    # Cleanup after test
    factory.shutdown()


@pytest.fixture(autouse=True)
def cleanup_global_logging():
    """Restore global logging state after each test."""
    yield

    from dbbridge.logging.factory import get_factory
    get_factory().shutdown()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    # configure() replaces the structlog pipeline; put the quiet test one back
    structlog.configure(
        processors=[structlog.testing.LogCapture()],
        wrapper_class=structlog.BoundLogger,
        logger_factory=structlog.testing.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )
