# src/dbbridge/database/interface.py
"""Session facade over connections, execution and metadata.

Example:
    >>> from dbbridge import DatabaseInterface, PyMySQLDriver
    >>> with DatabaseInterface(PyMySQLDriver(), {"Server": {"user": "app"}}) as dbi:
    ...     tables = dbi.get_tables_full("shop", limit_count=True)
    ...     dbi.get_db_collation("shop")
    'utf8mb4_general_ci'
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from dbbridge.config.models import DbBridgeConfig, ServerConfig
from dbbridge.core import ManagedComponent
from dbbridge.logging import configure_logging, get_logger

from .cache import TableCache
from .connection import ConnectionManager, ResolvedParams
from .dblist import DatabaseList
from .drivers.base import DatabaseDriver
from .executor import DebugLog, QueryExecutor, QueryResult
from .metadata import MetadataService, TableFilter
from .models import (
    ColumnMapEntry,
    ConnectionRole,
    DebugQuery,
    ForeignKeyConstraint,
    QueryOptions,
)
from .versions import ServerVersion, is_system_schema, needs_upgrade

PRIMARY = ConnectionRole.PRIMARY
CONTROL = ConnectionRole.CONTROL

# first server version with utf8mb4 support
UTF8MB4_MIN_VERSION = 50503


class DatabaseInterface(ManagedComponent[DbBridgeConfig]):
    """One database session.

    Owns the connection manager, the query executor, the table cache, the
    SQL debug log and the metadata service. Nothing is shared between
    sessions; ``cleanup`` closes every handle and empties the cache.

    The ``logging`` section of the configuration is applied through
    ``configure_logging`` only when ``apply_logging_config`` is set.
    """

    component_name = "DatabaseInterface"
    version = "1.0.0"

    def __init__(
        self,
        driver: DatabaseDriver,
        config: Union[None, DbBridgeConfig, Mapping[str, Any]] = None,
        *,
        apply_logging_config: bool = False,
    ) -> None:
        if config is None:
            config = DbBridgeConfig()
        elif not isinstance(config, DbBridgeConfig):
            config = DbBridgeConfig.from_mapping(dict(config))
        super().__init__(config)
        if apply_logging_config:
            configure_logging(config.logging)

        self.driver = driver
        self.logger = get_logger("database.interface")
        self.debug_log = DebugLog()
        self.table_cache = TableCache()
        self.connections = ConnectionManager(driver, config)
        self.executor = QueryExecutor(self.connections, config.dbg, self.debug_log)
        self.metadata = MetadataService(self.executor, self.table_cache, config)

        self.server_version: Optional[ServerVersion] = None
        self.charset_connection = "utf8mb4"
        self.database_list: Optional[DatabaseList] = None
        self._current_user: Optional[Tuple[str, str]] = None
        self._is_amazon_rds: Optional[bool] = None

    # lifecycle

    def _initialize(self) -> None:
        self.connect(PRIMARY)
        self.post_connect()

    def _cleanup(self) -> None:
        self.connections.close()
        self.executor.reset()
        self.table_cache.clear()
        self.database_list = None
        self._current_user = None
        self._is_amazon_rds = None

    def connect(self, role: ConnectionRole = PRIMARY) -> Any:
        """Open the connection for ``role``; see ``ConnectionManager.connect``."""
        return self.connections.connect(role)

    def resolve_connection_params(
        self,
        role: ConnectionRole,
        server: Union[None, ServerConfig, Mapping[str, Any]] = None,
    ) -> ResolvedParams:
        return self.connections.resolve_connection_params(role, server)

    def post_connect(self) -> None:
        """Read the server version and set the connection charset."""
        row = self.executor.fetch_single_row("SELECT @@version, @@version_comment", mode="num")
        if row:
            self.server_version = ServerVersion.from_strings(str(row[0]), str(row[1] or ""))
        else:
            self.server_version = ServerVersion.from_strings("")

        minimum = self.config.mysql_min_version
        if needs_upgrade(self.server_version.version_int, minimum.internal):
            self.logger.warning(
                "Server version is older than the supported minimum",
                version=self.server_version.version,
                minimum=minimum.human,
            )

        if self.server_version.version_int >= UTF8MB4_MIN_VERSION:
            self.charset_connection, collation = "utf8mb4", "utf8mb4_general_ci"
        else:
            self.charset_connection, collation = "utf8", "utf8_general_ci"
        self.executor.try_query(
            f"SET NAMES '{self.charset_connection}' COLLATE '{collation}';",
            cache_affected_rows=False,
        )
        self.logger.info(
            "Session ready",
            version=self.server_version.version,
            charset=self.charset_connection,
        )

    def post_connect_control(self) -> DatabaseList:
        """Connect the control user when configured and build the database list."""
        if self.connections.is_configured(CONTROL) and not self.connections.is_connected(CONTROL):
            self.connect(CONTROL)
        self.database_list = DatabaseList.from_server(self.executor, self.config.server)
        return self.database_list

    # execution

    def query(
        self,
        sql: str,
        role: ConnectionRole = PRIMARY,
        options: QueryOptions = QueryOptions.BUFFERED,
        cache_affected_rows: bool = True,
    ) -> QueryResult:
        return self.executor.query(sql, role, options, cache_affected_rows)

    def try_query(
        self,
        sql: str,
        role: ConnectionRole = PRIMARY,
        options: QueryOptions = QueryOptions.BUFFERED,
        cache_affected_rows: bool = True,
    ) -> Optional[QueryResult]:
        return self.executor.try_query(sql, role, options, cache_affected_rows)

    def fetch_value(
        self,
        sql: str,
        row: int = 0,
        column: Union[int, str] = 0,
        role: ConnectionRole = PRIMARY,
    ) -> Any:
        return self.executor.fetch_value(sql, row, column, role)

    def fetch_single_row(self, sql: str, mode: str = "assoc", role: ConnectionRole = PRIMARY) -> Any:
        return self.executor.fetch_single_row(sql, mode, role)

    def fetch_result(
        self,
        sql: str,
        key: Optional[str] = None,
        value: Optional[str] = None,
        role: ConnectionRole = PRIMARY,
    ) -> Union[List[Any], Dict[Any, Any]]:
        return self.executor.fetch_result(sql, key, value, role)

    def get_error(self, role: ConnectionRole = PRIMARY) -> Optional[str]:
        return self.executor.get_error(role)

    def affected_rows(self, role: ConnectionRole = PRIMARY, from_cache: bool = True) -> int:
        return self.executor.affected_rows(role, from_cache)

    def escape_string(self, text: str, role: ConnectionRole = PRIMARY) -> str:
        return self.executor.escape_string(text, role)

    def select_db(self, database: str, role: ConnectionRole = PRIMARY) -> bool:
        return self.executor.select_db(database, role)

    def get_debug_queries(self) -> List[DebugQuery]:
        return self.debug_log.entries()

    # metadata

    def get_tables_full(
        self,
        database: str,
        table: TableFilter = None,
        tbl_is_group: bool = False,
        limit_offset: int = 0,
        limit_count: Union[bool, int, None] = False,
        sort_by: str = "Name",
        sort_order: str = "ASC",
        table_type: Optional[str] = None,
        role: ConnectionRole = PRIMARY,
    ) -> Dict[str, Dict[str, Any]]:
        return self.metadata.get_tables_full(
            database,
            table,
            tbl_is_group,
            limit_offset,
            limit_count,
            sort_by,
            sort_order,
            table_type,
            role,
        )

    def get_cached_table_content(self, databases: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        return self.table_cache.get_cached(databases)

    def clear_table_cache(self, databases: Optional[Iterable[str]] = None) -> None:
        self.table_cache.clear(databases)

    def get_foreign_key_constraints(
        self,
        database: str,
        table_names: Iterable[str],
        role: ConnectionRole = PRIMARY,
    ) -> List[ForeignKeyConstraint]:
        return self.metadata.get_foreign_key_constraints(database, table_names, role)

    def get_column_map_from_sql(
        self,
        sql_query: str,
        view_columns: Sequence[str],
        role: ConnectionRole = PRIMARY,
    ) -> List[ColumnMapEntry]:
        return self.metadata.get_column_map_from_sql(sql_query, view_columns, role)

    def get_db_collation(self, database: str, role: ConnectionRole = PRIMARY) -> str:
        return self.metadata.get_db_collation(database, role)

    def get_server_collation(self, role: ConnectionRole = PRIMARY) -> str:
        return self.metadata.get_server_collation(role)

    def set_collation(self, collation: str, role: ConnectionRole = PRIMARY) -> bool:
        return self.metadata.set_collation(collation, self.charset_connection, role)

    @staticmethod
    def is_system_schema(schema_name: str) -> bool:
        return is_system_schema(schema_name)

    # server information

    def get_current_user_and_host(self) -> Tuple[str, str]:
        """``(user, host)`` of the authenticated account, ``('', '')`` if unknown."""
        if self._current_user is None:
            value = self.executor.fetch_value("SELECT CURRENT_USER();")
            if not value:
                return "", ""
            user, _, host = str(value).partition("@")
            self._current_user = (user, host)
        return self._current_user

    def get_current_user(self) -> str:
        """``user@host`` of the authenticated account, ``@`` if unknown."""
        user, host = self.get_current_user_and_host()
        return f"{user}@{host}"

    def is_amazon_rds(self) -> bool:
        """Whether the server runs on Amazon RDS."""
        if self._is_amazon_rds is None:
            basedir = self.executor.fetch_value("SELECT @@basedir")
            self._is_amazon_rds = str(basedir or "").startswith("/rdsdbbin")
        return self._is_amazon_rds

    def get_version(self) -> int:
        return self.server_version.version_int if self.server_version else 0

    def get_version_string(self) -> str:
        return self.server_version.version if self.server_version else ""

    def is_mariadb(self) -> bool:
        return bool(self.server_version and self.server_version.is_mariadb)

    def is_percona(self) -> bool:
        return bool(self.server_version and self.server_version.is_percona)

    def get_health_status(self) -> Dict[str, Any]:
        status = super().get_health_status()
        status.update(
            driver=self.driver.driver_name,
            server_version=self.get_version_string(),
            connections=self.connections.get_health_status()["connected_roles"],
            cached_tables=len(self.table_cache),
        )
        return status
