# src/dbbridge/database/drivers/mysql.py
"""MySQL/MariaDB driver implementation on top of PyMySQL."""

from typing import Any, Dict, List, Optional, Tuple

import pymysql
import pymysql.cursors

from dbbridge.logging import get_logger

from ..models import ConnectionParams, FieldMeta, QueryOptions
from .base import DatabaseDriver

DEFAULT_PORT = 3306


class PyMySQLHandle:
    """A PyMySQL connection plus the last error raised on it."""

    def __init__(self, connection: pymysql.connections.Connection) -> None:
        self.connection = connection
        self.error: Tuple[int, str] = (0, "")


class PyMySQLResult:
    """A cursor holding one statement's result set."""

    def __init__(self, cursor: pymysql.cursors.Cursor, buffered: bool) -> None:
        self.cursor = cursor
        self.buffered = buffered
        self.fetched = 0


def _error_tuple(exc: pymysql.MySQLError) -> Tuple[int, str]:
    if len(exc.args) >= 2 and isinstance(exc.args[0], int):
        return exc.args[0], str(exc.args[1])
    return 0, str(exc)


class PyMySQLDriver(DatabaseDriver):
    """Driver for MySQL, MariaDB and compatible servers.

    Buffered statements use PyMySQL's client-side cursor, unbuffered ones
    its server-side ``SSCursor``. Connections run with autocommit and the
    ``utf8mb4`` client charset; the session charset is adjusted after
    connecting.
    """

    driver_name = "pymysql"

    def __init__(self, *, connect_timeout: int = 10, charset: str = "utf8mb4") -> None:
        self.logger = get_logger("driver.pymysql")
        self.connect_timeout = connect_timeout
        self.charset = charset
        self._connect_error: Tuple[int, str] = (0, "")

    def _connect_kwargs(self, user: str, password: str, params: ConnectionParams) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "user": user,
            "password": password,
            "host": params.host,
            "port": params.port or DEFAULT_PORT,
            "charset": self.charset,
            "autocommit": True,
            "connect_timeout": self.connect_timeout,
        }
        if params.socket:
            kwargs["unix_socket"] = params.socket
        if params.ssl:
            options = params.ssl_options
            verify = options.get("verify", True)
            ssl: Dict[str, Any] = {"check_hostname": verify, "verify_mode": verify}
            for source, target in (
                ("ca", "ca"),
                ("capath", "capath"),
                ("cert", "cert"),
                ("key", "key"),
                ("cipher", "cipher"),
            ):
                if options.get(source):
                    ssl[target] = options[source]
            kwargs["ssl"] = ssl
        if params.compress:
            self.logger.warning("Protocol compression is not supported by PyMySQL", host=params.host)
        return kwargs

    def connect(self, user: str, password: str, params: ConnectionParams) -> Optional[PyMySQLHandle]:
        try:
            connection = pymysql.connect(**self._connect_kwargs(user, password, params))
        except pymysql.MySQLError as e:
            self._connect_error = _error_tuple(e)
            self.logger.debug("Connection attempt failed", host=params.host, errno=self._connect_error[0])
            return None
        self._connect_error = (0, "")
        return PyMySQLHandle(connection)

    def query(self, handle: PyMySQLHandle, sql: str, options: QueryOptions) -> Optional[PyMySQLResult]:
        buffered = not (options & QueryOptions.UNBUFFERED)
        cursor_class = pymysql.cursors.Cursor if buffered else pymysql.cursors.SSCursor
        cursor = handle.connection.cursor(cursor_class)
        try:
            cursor.execute(sql)
        except pymysql.MySQLError as e:
            handle.error = _error_tuple(e)
            cursor.close()
            return None
        handle.error = (0, "")
        return PyMySQLResult(cursor, buffered)

    def fetch_row(self, result: PyMySQLResult) -> Optional[Tuple[Any, ...]]:
        if result.cursor.description is None:
            return None
        row = result.cursor.fetchone()
        if row is not None:
            result.fetched += 1
        return row

    def fields_meta(self, result: PyMySQLResult) -> Optional[List[FieldMeta]]:
        cursor = result.cursor
        if cursor.description is None:
            return []
        packets = getattr(getattr(cursor, "_result", None), "fields", None)
        if packets is None:
            return None
        return [
            FieldMeta(
                name=packet.name,
                table=packet.table_name,
                org_name=packet.org_name,
                org_table=packet.org_table,
                db=packet.db,
            )
            for packet in packets
        ]

    def escape_string(self, handle: PyMySQLHandle, text: str) -> str:
        return handle.connection.escape_string(text)

    def last_error(self, handle: Optional[PyMySQLHandle]) -> Tuple[int, str]:
        if handle is None:
            return self._connect_error
        return handle.error

    def num_rows(self, result: PyMySQLResult) -> int:
        if result.buffered:
            return max(result.cursor.rowcount, 0)
        return result.fetched

    def affected_rows(self, handle: PyMySQLHandle) -> int:
        return handle.connection.affected_rows()

    def data_seek(self, result: PyMySQLResult, offset: int) -> bool:
        # statements without a result set leave no rows to scroll
        if not result.buffered or result.cursor.description is None:
            return False
        try:
            result.cursor.scroll(offset, mode="absolute")
        except IndexError:
            return False
        return True

    def free_result(self, result: PyMySQLResult) -> None:
        result.cursor.close()

    def select_db(self, handle: PyMySQLHandle, database: str) -> bool:
        try:
            handle.connection.select_db(database)
        except pymysql.MySQLError as e:
            handle.error = _error_tuple(e)
            return False
        handle.error = (0, "")
        return True

    def close(self, handle: PyMySQLHandle) -> None:
        if handle.connection.open:
            handle.connection.close()
