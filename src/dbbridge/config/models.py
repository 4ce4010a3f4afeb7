"""Configuration models for dbbridge.

This module defines the Pydantic models that turn the raw, nested
configuration handed over by the hosting application into validated,
typed objects. Field aliases match the raw keys (``Server``,
``DisableIS``, ``MaxTableList`` ...) so the caller's structure can be
passed through verbatim.

Classes:
    BaseConfig: Base configuration class
    ServerConfig: Connection settings for the primary and control roles
    DebugConfig: SQL debugging switches
    MinVersionConfig: Minimum supported server version
    LoggingConfig: Logging configuration
    DbBridgeConfig: Top-level configuration

Example:
    >>> config = DbBridgeConfig.model_validate({
    ...     "Server": {"user": "app", "password": "${DB_PASSWORD}", "host": ""},
    ...     "MaxTableList": 100,
    ...     "DBG": {"sql": True},
    ... })
    >>> config.server.user
    'app'
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    SecretStr,
    conint,
    field_validator,
    model_validator,
)

from ..core.exceptions import ValidationError
from ..core.utils import ValidationUtils

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class BaseConfig(BaseModel):
    """Base configuration class with common functionality.

    Provides environment variable interpolation, secret masking and
    copy-with-updates for all configuration objects.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
    )

    @model_validator(mode="before")
    @classmethod
    def resolve_environment_variables(cls, values: Any) -> Any:
        """Resolve environment variables in configuration values.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.

        Args:
            values: Raw configuration values

        Returns:
            Values with environment variables resolved
        """
        if not isinstance(values, dict):
            return values

        def replace_env_var(match: "re.Match[str]") -> str:
            var_spec = match.group(1)
            if ":" in var_spec:
                var_name, default = var_spec.split(":", 1)
            else:
                var_name, default = var_spec, ""
            return os.getenv(var_name, default)

        def resolve_value(value: Any) -> Any:
            if isinstance(value, str):
                return _ENV_PATTERN.sub(replace_env_var, value)
            elif isinstance(value, dict):
                return {k: resolve_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [resolve_value(item) for item in value]
            return value

        return {key: resolve_value(value) for key, value in values.items()}

    def to_dict(self, *, mask_secrets: bool = True) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Args:
            mask_secrets: Whether to mask secret values

        Returns:
            Dictionary representation of configuration
        """

        def convert(value: Any) -> Any:
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [convert(item) for item in value]
            elif isinstance(value, SecretStr):
                return "***MASKED***" if mask_secrets else value.get_secret_value()
            return value

        return convert(self.model_dump())

    def update_from_dict(self, data: Dict[str, Any]) -> "BaseConfig":
        """Return a new configuration instance with ``data`` applied."""
        current_data = self.to_dict(mask_secrets=False)
        current_data.update(data)
        return self.__class__.model_validate(current_data)


class ServerConfig(BaseConfig):
    """Connection settings for one server.

    Carries the primary user's credentials and connection shape, plus the
    control user's credentials and the ``control*`` overrides that let the
    control connection differ from the primary one.

    Attributes:
        host: Server host name; empty means localhost
        port: TCP port; 0 means the driver default
        socket: Unix socket path, preferred over host when set
        ssl: Use SSL for the primary connection
        compress: Use protocol compression
        controluser: Control user name
        controlpass: Control user password
        control_ssl: SSL for the control connection, inherits ``ssl`` if unset
        only_db: SQL LIKE patterns limiting the visible databases
        hide_db: Regular expression hiding matching databases
        disable_is: Use legacy SHOW commands instead of information_schema
    """

    model_config = ConfigDict(extra="ignore")

    host: str = Field("", description="Server host, empty for localhost")
    port: conint(ge=0, le=65535) = Field(0, description="Server port, 0 for default")
    socket: Optional[str] = Field(None, description="Unix socket path")
    user: Optional[str] = Field(None, description="Primary user name")
    password: Optional[SecretStr] = Field(None, description="Primary user password")

    ssl: bool = Field(False, description="Enable SSL for the primary connection")
    ssl_key: Optional[str] = Field(None, description="Client private key file")
    ssl_cert: Optional[str] = Field(None, description="Client certificate file")
    ssl_ca: Optional[str] = Field(None, description="CA certificate file")
    ssl_ca_path: Optional[str] = Field(None, description="Directory of CA certificates")
    ssl_ciphers: Optional[str] = Field(None, description="Allowed SSL ciphers")
    ssl_verify: bool = Field(True, description="Verify the server certificate")
    compress: bool = Field(False, description="Enable protocol compression")

    controlhost: str = Field("", description="Control connection host")
    controlport: conint(ge=0, le=65535) = Field(0, description="Control connection port")
    controluser: Optional[str] = Field(None, description="Control user name")
    controlpass: Optional[SecretStr] = Field(None, description="Control user password")
    control_ssl: Optional[bool] = Field(None, description="SSL for the control connection")
    control_socket: Optional[str] = Field(None, description="Socket for the control connection")
    control_compress: Optional[bool] = Field(None, description="Compression for the control connection")

    only_db: List[str] = Field(default_factory=list, description="Visible database patterns")
    hide_db: Optional[str] = Field(None, description="Regex of databases to hide")
    disable_is: bool = Field(False, alias="DisableIS", description="Disable information_schema")

    @field_validator("port", "controlport", mode="before")
    @classmethod
    def normalize_port(cls, v: Any) -> Any:
        """Treat an empty port as the driver default."""
        if v is None or v == "":
            return 0
        return v

    @field_validator("only_db", mode="before")
    @classmethod
    def normalize_only_db(cls, v: Union[None, str, List[str]]) -> List[str]:
        """Accept a single pattern or a list of patterns."""
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return [v]
        return list(v)

    @field_validator("hide_db")
    @classmethod
    def validate_hide_db(cls, v: Optional[str]) -> Optional[str]:
        """Ensure the hide_db expression compiles.

        Raises:
            ValidationError: If the regular expression is invalid
        """
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValidationError(f"Invalid hide_db expression: {e}")
        return v or None

    def secret(self, name: str) -> Optional[str]:
        """Return the plain value of a SecretStr field (or None)."""
        value = getattr(self, name)
        return value.get_secret_value() if value is not None else None


class DebugConfig(BaseConfig):
    """SQL debugging switches.

    Attributes:
        sql: Record every executed statement in the session debug log
        sqllog: Also write every statement to the ``dbbridge.sql`` logger
    """

    sql: bool = Field(False, description="Collect executed statements")
    sqllog: bool = Field(False, description="Log executed statements")


class MinVersionConfig(BaseConfig):
    """Minimum supported server version."""

    internal: PositiveInt = Field(50500, description="Numeric minimum version")
    human: str = Field("5.5.0", description="Display form of the minimum version")


class LoggingConfig(BaseConfig):
    """Logging configuration.

    Attributes:
        level: Log level
        format: Log format (json, text)
        file_path: Log file path
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
        console_output: Enable console output
        correlation_ids: Attach a correlation id to every event
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )
    format: Literal["json", "text"] = Field("json", description="Log format")
    file_path: Optional[Path] = Field(None, description="Log file path")
    max_file_size: PositiveInt = Field(10485760, description="Max file size in bytes (10MB)")
    backup_count: conint(ge=0) = Field(5, description="Number of backup files")
    console_output: bool = Field(True, description="Enable console output")
    correlation_ids: bool = Field(True, description="Enable correlation ids")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept lower-case level names."""
        if isinstance(v, str) and ValidationUtils.validate_identifier(v):
            return v.upper()
        return v


class DbBridgeConfig(BaseConfig):
    """Top-level dbbridge configuration.

    Attributes:
        server: Active server settings
        max_table_list: Page size used when ``limit_count`` is True
        mysql_min_version: Minimum supported server version
        dbg: SQL debugging switches
        natural_order: Sort table names naturally
        logging: Logging configuration
    """

    model_config = ConfigDict(extra="ignore")

    server: ServerConfig = Field(default_factory=ServerConfig, alias="Server")
    max_table_list: PositiveInt = Field(250, alias="MaxTableList")
    mysql_min_version: MinVersionConfig = Field(
        default_factory=MinVersionConfig, alias="MysqlMinVersion"
    )
    dbg: DebugConfig = Field(default_factory=DebugConfig, alias="DBG")
    natural_order: bool = Field(True, alias="NaturalOrder")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "DbBridgeConfig":
        """Build a configuration from the caller's raw nested mapping."""
        return cls.model_validate(data)
