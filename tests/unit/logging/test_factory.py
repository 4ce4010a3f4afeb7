"""Tests for logging factory module."""

import logging
import logging.handlers

import pytest

from dbbridge.config.models import LoggingConfig
from dbbridge.core.exceptions import ValidationError
from dbbridge.logging.factory import (
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
    shutdown_logging,
)
from dbbridge.logging.performance import PerformanceLogger
from dbbridge.logging.structured import StructuredLogger


class TestLoggerFactory:
    """Test cases for LoggerFactory class."""

    def test_factory_initialization(self):
        """Test LoggerFactory initializes correctly."""
        factory = LoggerFactory()

        assert isinstance(factory.config, LoggingConfig)
        assert factory.initialized is False
        assert len(factory._loggers) == 0
        assert len(factory._performance_loggers) == 0

    def test_factory_with_custom_config(self):
        """Test LoggerFactory with custom config."""
        factory = LoggerFactory(LoggingConfig(level="DEBUG", format="text"))

        assert factory.config.level == "DEBUG"
        assert factory.config.format == "text"

    def test_configure_with_file_output(self, logger_factory, sample_logging_config, temp_log_file):
        """Test configure attaches a rotating file handler."""
        logger_factory.configure(sample_logging_config)

        assert logger_factory.initialized is True
        assert len(logger_factory._handlers) == 1
        handler = logger_factory._handlers[0]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert handler.maxBytes == 1048576
        assert handler.backupCount == 3
        assert handler in logging.getLogger().handlers

    def test_reconfigure_replaces_handlers(self, logger_factory, sample_logging_config):
        """Test configuring twice does not stack handlers."""
        logger_factory.configure(sample_logging_config)
        logger_factory.configure(sample_logging_config)

        assert len(logger_factory._handlers) == 1

    def test_get_logger_is_cached(self, logger_factory):
        """Test loggers are cached per name and level."""
        first = logger_factory.get_logger("database.executor")
        second = logger_factory.get_logger("database.executor")
        debug = logger_factory.get_logger("database.executor", level="DEBUG")

        assert isinstance(first, StructuredLogger)
        assert first is second
        assert debug is not first

    def test_get_performance_logger(self, logger_factory):
        """Test performance loggers are cached and log through a perf logger."""
        perf = logger_factory.get_performance_logger("metadata")

        assert isinstance(perf, PerformanceLogger)
        assert perf is logger_factory.get_performance_logger("metadata")
        assert perf.logger.name == "perf.metadata"

    def test_set_level(self, logger_factory):
        """Test set_level updates the config and cached loggers."""
        logger = logger_factory.get_logger("dbbridge.sql")

        logger_factory.set_level("warning")

        assert logger_factory.config.level == "WARNING"
        assert logger.get_level() == "WARNING"

    def test_set_invalid_level(self, logger_factory):
        """Test unknown levels are rejected."""
        with pytest.raises(ValidationError):
            logger_factory.set_level("LOUD")

    def test_shutdown(self, logger_factory, sample_logging_config):
        """Test shutdown detaches handlers and clears caches."""
        logger_factory.configure(sample_logging_config)
        logger_factory.get_logger("database.interface")
        handler = logger_factory._handlers[0]

        logger_factory.shutdown()

        assert logger_factory.initialized is False
        assert logger_factory._handlers == []
        assert logger_factory._loggers == {}
        assert handler not in logging.getLogger().handlers

    def test_repr(self, logger_factory):
        """Test factory representation."""
        assert "initialized=False" in repr(logger_factory)


class TestGlobalFunctions:
    """Test module-level convenience functions."""

    def test_get_factory_is_singleton(self):
        """Test the global factory is shared."""
        assert get_factory() is get_factory()

    def test_get_logger_uses_global_factory(self):
        """Test get_logger caches through the global factory."""
        assert get_logger("connection") is get_factory().get_logger("connection")

    def test_get_performance_logger_uses_global_factory(self):
        """Test get_performance_logger caches through the global factory."""
        assert get_performance_logger("executor") is get_factory().get_performance_logger("executor")

    def test_configure_logging_with_overrides(self):
        """Test configure_logging applies field overrides."""
        configure_logging(LoggingConfig(console_output=False), level="DEBUG", format="text")

        factory = get_factory()
        assert factory.initialized is True
        assert factory.config.level == "DEBUG"
        assert factory.config.format == "text"
        assert logging.getLogger().level == logging.DEBUG

    def test_shutdown_logging(self):
        """Test shutdown_logging resets the global factory."""
        configure_logging(LoggingConfig(console_output=False))

        shutdown_logging()

        assert get_factory().initialized is False
