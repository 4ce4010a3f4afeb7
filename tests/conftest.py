"""Pytest configuration and shared fixtures.

This module provides pytest configuration and shared fixtures for all tests
in the dbbridge test suite.
"""

import tempfile
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import MagicMock

import pytest
import structlog

from dbbridge.config.models import DbBridgeConfig
from dbbridge.database import DatabaseInterface, DummyDriver

# Configure test logging to suppress noise during tests
structlog.configure(
    processors=[structlog.testing.LogCapture()],
    wrapper_class=structlog.BoundLogger,
    logger_factory=structlog.testing.ReturnLoggerFactory(),
    cache_logger_on_first_use=False,
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def mock_logger():
    """Mock structured logger for testing."""
    logger = MagicMock()
    logger.bind.return_value = logger
    logger.info = MagicMock()
    logger.error = MagicMock()
    logger.warning = MagicMock()
    logger.debug = MagicMock()
    return logger


@pytest.fixture
def server_config_data() -> Dict[str, Any]:
    """Raw server settings as handed over by the hosting application."""
    return {
        "user": "pma_test",
        "password": "secret",
        "host": "",
        "port": 0,
        "socket": None,
        "ssl": False,
        "compress": False,
        "controluser": "pma_control",
        "controlpass": "control_secret",
    }


@pytest.fixture
def config_data(server_config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Raw top-level configuration."""
    return {
        "Server": server_config_data,
        "MaxTableList": 250,
        "MysqlMinVersion": {"internal": 50500, "human": "5.5.0"},
        "DBG": {"sql": False, "sqllog": False},
    }


@pytest.fixture
def bridge_config(config_data: Dict[str, Any]) -> DbBridgeConfig:
    """Validated configuration."""
    return DbBridgeConfig.from_mapping(config_data)


@pytest.fixture
def dummy_driver() -> DummyDriver:
    """In-memory driver with the default canned results."""
    return DummyDriver()


@pytest.fixture
def dbi(dummy_driver: DummyDriver, bridge_config: DbBridgeConfig) -> Generator[DatabaseInterface, None, None]:
    """Initialized session on the dummy driver."""
    session = DatabaseInterface(dummy_driver, bridge_config)
    session.initialize()
    yield session
    session.cleanup()


def make_dbi(driver: DummyDriver, **overrides: Any) -> DatabaseInterface:
    """Build and initialize a session with top-level config overrides."""
    data: Dict[str, Any] = {"Server": {"user": "pma_test", "password": "secret"}}
    data.update(overrides)
    session = DatabaseInterface(driver, data)
    session.initialize()
    return session


@pytest.fixture
def dbi_factory(dummy_driver: DummyDriver):
    """Factory building sessions with custom configuration."""
    sessions = []

    def _make(**overrides: Any) -> DatabaseInterface:
        session = make_dbi(dummy_driver, **overrides)
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        session.cleanup()


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "database: marks tests exercising the database layer"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    tests_root = Path(str(config.rootdir)) / "tests"
    for item in items:
        try:
            test_path = Path(item.path).relative_to(tests_root)
        except ValueError:
            continue

        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)
        if "database" in test_path.parts:
            item.add_marker(pytest.mark.database)
