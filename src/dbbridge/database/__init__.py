"""dbbridge database layer.

This package resolves connection parameters, runs statements through an
injected driver and retrieves table metadata from MySQL-family servers.

Key pieces:
- ``DatabaseInterface``: one session owning connections, cache and debug log
- ``DatabaseDriver``: the driver contract, with PyMySQL and in-memory drivers
- ``MetadataService``: catalog or legacy table listings in one record shape
- ``version_to_int`` / ``format_error``: version parsing and error messages
"""

from .cache import TableCache
from .connection import ConnectionManager
from .dblist import DatabaseList
from .drivers import CannedResult, DatabaseDriver, DummyDriver, PyMySQLDriver
from .executor import DebugLog, QueryExecutor, QueryResult
from .interface import DatabaseInterface
from .metadata import (
    InformationSchemaSource,
    MetadataService,
    TableQuery,
    TableStatusSource,
    build_table_condition,
)
from .models import (
    ColumnMapEntry,
    ConnectionParams,
    ConnectionRole,
    DebugQuery,
    FieldMeta,
    ForeignKeyConstraint,
    QueryOptions,
    TableRecord,
)
from .versions import (
    DEFAULT_COLLATION,
    ServerVersion,
    format_error,
    is_system_schema,
    needs_upgrade,
    version_to_int,
)

__all__ = [
    # Session
    "DatabaseInterface",
    "ConnectionManager",
    "QueryExecutor",
    "QueryResult",
    "DebugLog",
    "MetadataService",
    "TableCache",
    "DatabaseList",

    # Metadata sources
    "InformationSchemaSource",
    "TableStatusSource",
    "TableQuery",
    "build_table_condition",

    # Drivers
    "DatabaseDriver",
    "DummyDriver",
    "CannedResult",
    "PyMySQLDriver",

    # Models
    "ConnectionRole",
    "ConnectionParams",
    "QueryOptions",
    "FieldMeta",
    "DebugQuery",
    "TableRecord",
    "ForeignKeyConstraint",
    "ColumnMapEntry",

    # Versions and errors
    "DEFAULT_COLLATION",
    "ServerVersion",
    "format_error",
    "is_system_schema",
    "needs_upgrade",
    "version_to_int",
]
