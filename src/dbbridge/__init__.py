"""dbbridge - database access layer for MySQL-family servers.

dbbridge hides the differences between MySQL, MariaDB, Percona and managed
cloud variants behind one synchronous session interface: connection
parameter resolution for a primary and a control user, query execution
with an SQL debug log, and table metadata from information_schema or the
legacy SHOW commands, cached per session.

Modules:
    core: Base classes, exceptions and utilities
    config: Configuration models
    logging: Structured logging framework
    database: Drivers, connections, execution and metadata

Example:
    >>> from dbbridge import DatabaseInterface, PyMySQLDriver
    >>> from dbbridge.logging import configure_logging
    >>>
    >>> configure_logging(level="INFO", format="text")
    >>> config = {"Server": {"host": "db.local", "user": "app", "password": "${DB_PASSWORD}"}}
    >>> with DatabaseInterface(PyMySQLDriver(), config) as dbi:
    ...     dbi.get_tables_full("shop", sort_by="Data_length", sort_order="DESC")
"""

from . import config, core, database, logging
from .config import DbBridgeConfig
from .database import ConnectionRole, DatabaseInterface, DummyDriver, PyMySQLDriver, QueryOptions

__version__ = "0.1.0"
__title__ = "dbbridge"
__description__ = "Database access layer for MySQL-family servers"
__license__ = "MIT"

__all__ = [
    "core",
    "config",
    "logging",
    "database",
    "DbBridgeConfig",
    "DatabaseInterface",
    "ConnectionRole",
    "QueryOptions",
    "DummyDriver",
    "PyMySQLDriver",
    "__version__",
    "__title__",
    "__description__",
    "__license__",
]
