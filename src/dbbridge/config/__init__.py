"""dbbridge configuration management.

This package provides type-safe configuration models built with Pydantic.

Classes:
    BaseConfig: Base configuration class
    ServerConfig: Server connection settings
    DebugConfig: SQL debugging switches
    MinVersionConfig: Minimum supported server version
    LoggingConfig: Logging configuration
    DbBridgeConfig: Top-level configuration

Example:
    >>> from dbbridge.config import DbBridgeConfig
    >>> config = DbBridgeConfig.from_mapping({"Server": {"user": "root"}})
"""

from .models import (
    BaseConfig,
    DbBridgeConfig,
    DebugConfig,
    LoggingConfig,
    MinVersionConfig,
    ServerConfig,
)

__all__ = [
    "BaseConfig",
    "DbBridgeConfig",
    "DebugConfig",
    "LoggingConfig",
    "MinVersionConfig",
    "ServerConfig",
]
