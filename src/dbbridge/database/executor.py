# src/dbbridge/database/executor.py
"""Statement execution on a connection role.

Classes:
    QueryResult: Iterable wrapper around a driver result
    DebugLog: Ordered record of executed statements
    QueryExecutor: Runs statements and keeps per-role error state

Example:
    >>> executor = QueryExecutor(connections, DebugConfig(sql=True))
    >>> result = executor.try_query("SELECT 1")
    >>> [row for row in result]
    [(1,)]
"""

import threading
from collections import Counter
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union, cast

from dbbridge.config.models import DebugConfig
from dbbridge.core.exceptions import ErrorCodes, MetadataError, QueryError, ValidationError
from dbbridge.logging import get_logger, get_performance_logger

from .connection import ConnectionManager
from .models import ConnectionRole, DebugQuery, FieldMeta, QueryOptions
from .versions import format_error


class QueryResult:
    """Rows and column metadata of one executed statement.

    Buffered results can be iterated any number of times; every new
    iteration starts from the first row. Unbuffered results stream their
    rows once.
    """

    def __init__(
        self,
        driver: Any,
        raw: Any,
        *,
        sql: str,
        role: ConnectionRole,
        buffered: bool,
    ) -> None:
        self._driver = driver
        self._raw = raw
        self.sql = sql
        self.role = role
        self.buffered = buffered
        self._fields: Optional[List[FieldMeta]] = None
        self._freed = False

    @property
    def fields(self) -> List[FieldMeta]:
        """Column metadata.

        Raises:
            MetadataError: If the driver cannot describe the columns
        """
        if self._fields is None:
            fields = self._driver.fields_meta(self._raw)
            if fields is None:
                raise MetadataError(
                    "The driver does not report per-column metadata",
                    code=ErrorCodes.FIELD_METADATA_UNSUPPORTED,
                    context={"query": self.sql, "driver": self._driver.driver_name},
                )
            self._fields = fields
        return self._fields

    @property
    def column_names(self) -> List[str]:
        return [field.name for field in self.fields]

    @property
    def num_rows(self) -> int:
        return self._driver.num_rows(self._raw)

    @property
    def freed(self) -> bool:
        return self._freed

    def fetch_row(self) -> Optional[Tuple[Any, ...]]:
        """Next row as a tuple, ``None`` when exhausted or freed."""
        if self._freed:
            return None
        return self._driver.fetch_row(self._raw)

    def fetch_assoc(self) -> Optional[Dict[str, Any]]:
        """Next row keyed by column name."""
        row = self.fetch_row()
        if row is None:
            return None
        return dict(zip(self.column_names, row))

    def seek(self, offset: int) -> bool:
        if self._freed:
            return False
        return self._driver.data_seek(self._raw, offset)

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        if self.buffered:
            self.seek(0)
        while True:
            row = self.fetch_row()
            if row is None:
                return
            yield row

    def iter_assoc(self) -> Iterator[Dict[str, Any]]:
        names = self.column_names
        for row in self:
            yield dict(zip(names, row))

    def free(self) -> None:
        if not self._freed:
            self._driver.free_result(self._raw)
            self._freed = True

    def __enter__(self) -> "QueryResult":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.free()

    def __repr__(self) -> str:
        return f"QueryResult(role={self.role.value!r}, buffered={self.buffered}, sql={self.sql!r})"


class DebugLog:
    """Executed statements in execution order, shared by one session."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[DebugQuery] = []
        self._counts: Counter = Counter()

    def append(
        self,
        query: str,
        role: ConnectionRole,
        duration: float = 0.0,
        error: Optional[str] = None,
    ) -> DebugQuery:
        with self._lock:
            self._counts[query] += 1
            entry = DebugQuery(
                query=query,
                role=role.value,
                duration=duration,
                count=self._counts[query],
                error=error,
            )
            self._entries.append(entry)
            return entry

    def entries(self) -> List[DebugQuery]:
        with self._lock:
            return list(self._entries)

    def counts(self) -> Dict[str, int]:
        """How often each statement has been executed."""
        with self._lock:
            return dict(self._counts)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._counts.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class QueryExecutor:
    """Runs statements on the handles owned by a ConnectionManager."""

    def __init__(
        self,
        connections: ConnectionManager,
        dbg: Optional[DebugConfig] = None,
        debug_log: Optional[DebugLog] = None,
    ) -> None:
        self.connections = connections
        self.driver = connections.driver
        self.dbg = dbg or DebugConfig()
        self.debug_log = debug_log if debug_log is not None else DebugLog()
        self.logger = get_logger("database.executor")
        self.sql_logger = get_logger("dbbridge.sql")
        self.perf_logger = get_performance_logger("database.executor")
        self._errors: Dict[ConnectionRole, Tuple[int, str]] = {}
        self._affected_rows: Dict[ConnectionRole, int] = {}
        self._current_db: Dict[ConnectionRole, str] = {}

    def execute(
        self,
        sql: str,
        role: ConnectionRole = ConnectionRole.PRIMARY,
        options: QueryOptions = QueryOptions.BUFFERED,
        cache_affected_rows: bool = True,
        *,
        fatal: bool = True,
    ) -> Optional[QueryResult]:
        """Run ``sql`` on ``role``.

        Args:
            sql: Statement text
            role: Connection role to run on
            options: BUFFERED or UNBUFFERED result handling
            cache_affected_rows: Store the affected-row count right away
            fatal: Raise on failure instead of returning None

        Raises:
            QueryError: If the statement fails and ``fatal`` is set
            DatabaseConnectionError: If the role is not connected
        """
        handle = self.connections.get_handle(role)

        with self.perf_logger.measure("query", role=role.value) as timer:
            raw = self.driver.query(handle, sql, options)

        error: Optional[Tuple[int, str]] = None
        if raw is None:
            error = self.driver.last_error(handle)
        elif cache_affected_rows:
            self._affected_rows[role] = self.driver.affected_rows(handle)

        if self.dbg.sql:
            self.debug_log.append(
                sql,
                role,
                duration=timer.duration or 0.0,
                error=format_error(*error) if error else None,
            )
        if self.dbg.sqllog:
            self.sql_logger.info(
                "SQL statement",
                query=sql,
                role=role.value,
                duration_ms=timer.duration_ms,
                errno=error[0] if error else 0,
            )

        if error is not None:
            self._errors[role] = error
            message = format_error(*error)
            self.logger.warning("Query failed", role=role.value, errno=error[0], error=message)
            if fatal:
                raise QueryError(
                    message,
                    errno=error[0],
                    code=ErrorCodes.QUERY_EXECUTION_FAILED,
                    context={"query": sql, "role": role.value},
                )
            return None

        self._errors.pop(role, None)
        return QueryResult(
            self.driver,
            raw,
            sql=sql,
            role=role,
            buffered=not (options & QueryOptions.UNBUFFERED),
        )

    def query(
        self,
        sql: str,
        role: ConnectionRole = ConnectionRole.PRIMARY,
        options: QueryOptions = QueryOptions.BUFFERED,
        cache_affected_rows: bool = True,
    ) -> QueryResult:
        """Run ``sql``, raising QueryError with the classified message on failure."""
        return cast(QueryResult, self.execute(sql, role, options, cache_affected_rows, fatal=True))

    def try_query(
        self,
        sql: str,
        role: ConnectionRole = ConnectionRole.PRIMARY,
        options: QueryOptions = QueryOptions.BUFFERED,
        cache_affected_rows: bool = True,
    ) -> Optional[QueryResult]:
        """Run ``sql``, returning None on failure; see ``get_error``."""
        return self.execute(sql, role, options, cache_affected_rows, fatal=False)

    def get_error(self, role: ConnectionRole = ConnectionRole.PRIMARY) -> Optional[str]:
        """Classified message of the last failure on ``role``, if any."""
        error = self._errors.get(role)
        if error is None:
            return None
        return format_error(*error)

    def get_errno(self, role: ConnectionRole = ConnectionRole.PRIMARY) -> int:
        return self._errors.get(role, (0, ""))[0]

    def affected_rows(
        self,
        role: ConnectionRole = ConnectionRole.PRIMARY,
        from_cache: bool = True,
    ) -> int:
        """Rows affected by the last statement run on ``role``.

        The cached count is the one captured right after the statement that
        requested caching; later statements run without caching leave it
        untouched.
        """
        if from_cache and role in self._affected_rows:
            return self._affected_rows[role]
        return self.driver.affected_rows(self.connections.get_handle(role))

    def fetch_value(
        self,
        sql: str,
        row: int = 0,
        column: Union[int, str] = 0,
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> Any:
        """Single value of a result, ``None`` when the query fails or the cell is absent."""
        result = self.try_query(sql, role, cache_affected_rows=False)
        if result is None:
            return None
        with result:
            rows = result.iter_assoc() if isinstance(column, str) else iter(result)
            for index, current in enumerate(rows):
                if index < row:
                    continue
                if isinstance(column, str):
                    return current.get(column)
                return current[column] if column < len(current) else None
        return None

    def fetch_single_row(
        self,
        sql: str,
        mode: str = "assoc",
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> Union[None, Dict[str, Any], Tuple[Any, ...]]:
        """First row of a result, keyed by column name (``assoc``) or positional (``num``).

        Raises:
            ValidationError: If ``mode`` is neither ``assoc`` nor ``num``
        """
        if mode not in ("assoc", "num"):
            raise ValidationError(
                f"Unknown fetch mode: {mode}",
                code=ErrorCodes.INVALID_ARGUMENT,
                context={"mode": mode},
            )
        result = self.try_query(sql, role, cache_affected_rows=False)
        if result is None:
            return None
        with result:
            return result.fetch_assoc() if mode == "assoc" else result.fetch_row()

    def fetch_result(
        self,
        sql: str,
        key: Optional[str] = None,
        value: Optional[str] = None,
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> Union[List[Any], Dict[Any, Any]]:
        """Whole result as a list, or as a mapping keyed by column ``key``.

        With ``value`` each entry is that column's value instead of the full
        row. Single-column results without ``key`` become a flat list of
        values. A failing statement yields an empty list.
        """
        result = self.try_query(sql, role, cache_affected_rows=False)
        if result is None:
            return []
        with result:
            rows = list(result.iter_assoc())
            single_column = len(result.column_names) == 1

        def pick(row: Dict[str, Any]) -> Any:
            if value is not None:
                return row.get(value)
            if single_column:
                return next(iter(row.values()))
            return row

        if key is None:
            return [pick(row) for row in rows]
        return {row.get(key): pick(row) for row in rows}

    def escape_string(self, text: str, role: ConnectionRole = ConnectionRole.PRIMARY) -> str:
        return self.driver.escape_string(self.connections.get_handle(role), text)

    def select_db(self, database: str, role: ConnectionRole = ConnectionRole.PRIMARY) -> bool:
        """Make ``database`` the default database of ``role``."""
        handle = self.connections.get_handle(role)
        if not self.driver.select_db(handle, database):
            error = self.driver.last_error(handle)
            self._errors[role] = error
            self.logger.warning(
                "Database selection failed", role=role.value, database=database, errno=error[0]
            )
            return False
        self._current_db[role] = database
        self.logger.debug("Database selected", role=role.value, database=database)
        return True

    def current_database(self, role: ConnectionRole = ConnectionRole.PRIMARY) -> Optional[str]:
        return self._current_db.get(role)

    def reset(self) -> None:
        """Forget per-role error, affected-row and database state."""
        self._errors.clear()
        self._affected_rows.clear()
        self._current_db.clear()
