# src/dbbridge/database/drivers/dummy.py
"""In-memory driver answering statements from canned results.

Statements are matched either exactly (after whitespace normalisation) or
by regular expression. Unknown statements fail with a syntax error the
way a real server would reject them. The default result set describes a
small ``test`` database with two tables and one foreign key.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Pattern, Sequence, Tuple, Union

from pymysql.converters import escape_string

from ..models import ConnectionParams, FieldMeta, INFORMATION_SCHEMA_COLUMNS, QueryOptions
from .base import DatabaseDriver

ER_PARSE_ERROR = 1064
ER_BAD_DB_ERROR = 1049


def normalize_sql(sql: str) -> str:
    """Collapse whitespace runs so canned statements can be written freely."""
    return " ".join(sql.split())


@dataclass
class CannedResult:
    """One canned answer.

    ``rows`` of ``None`` makes the statement fail with ``error``. With
    ``describe`` off the driver reports no per-column metadata.
    """
    query: Union[str, Pattern[str]]
    rows: Optional[List[Sequence[Any]]]
    columns: List[str] = field(default_factory=list)
    metadata: Optional[List[FieldMeta]] = None
    describe: bool = True
    affected_rows: Optional[int] = None
    error: Tuple[int, str] = (0, "")

    def matches(self, sql: str) -> bool:
        if isinstance(self.query, str):
            return normalize_sql(self.query) == sql
        return self.query.search(sql) is not None


@dataclass
class DummyConnection:
    user: str
    params: ConnectionParams
    database: Optional[str] = None
    affected_rows: int = 0
    error: Tuple[int, str] = (0, "")
    closed: bool = False


@dataclass
class DummyResult:
    canned: CannedResult
    rows: List[Tuple[Any, ...]]
    buffered: bool
    position: int = 0
    freed: bool = False


_TABLE_STATUS_COLUMNS = [
    "Name", "Engine", "Version", "Row_format", "Rows", "Avg_row_length",
    "Data_length", "Max_data_length", "Index_length", "Data_free",
    "Auto_increment", "Create_time", "Update_time", "Check_time",
    "Collation", "Checksum", "Create_options", "Comment",
]

_TEST_TABLES = [
    # name, data_length, index_length, create_time, comment
    ("table1", "16384", "0", "10/16/2018 18:33", "table 1"),
    ("fks", "16384", "16384", "11/7/2018 10:57", ""),
]


def _information_schema_rows() -> List[Tuple[Any, ...]]:
    return [
        (
            "def", "test", name, "BASE TABLE", "InnoDB", "10", "Dynamic", "0", "0",
            data_length, "0", index_length, "0", "", create_time, "", "",
            "utf8mb4_0900_ai_ci", "", "", comment,
        )
        for name, data_length, index_length, create_time, comment in _TEST_TABLES
    ]


def _table_status_rows() -> List[Tuple[Any, ...]]:
    return [
        (
            name, "InnoDB", "10", "Dynamic", "0", "0", data_length, "0",
            index_length, "0", "", create_time, "", "", "utf8mb4_0900_ai_ci",
            "", "", comment,
        )
        for name, data_length, index_length, create_time, comment in _TEST_TABLES
    ]


def default_results() -> List[CannedResult]:
    """Canned answers for the statements issued during a typical session."""
    return [
        CannedResult("SELECT 1", [(1,)], ["1"]),
        CannedResult("SELECT CURRENT_USER();", [("pma_test@localhost",)], ["CURRENT_USER()"]),
        CannedResult(
            "SELECT @@version, @@version_comment",
            [("8.0.20", "MySQL Community Server - GPL")],
            ["@@version", "@@version_comment"],
        ),
        CannedResult("SELECT @@basedir", [("/usr/",)], ["@@basedir"]),
        CannedResult("SELECT @@collation_server", [("utf8_general_ci",)], ["@@collation_server"]),
        CannedResult(
            "SELECT @@collation_database", [("utf8_general_ci",)], ["@@collation_database"]
        ),
        CannedResult(
            re.compile(
                r"^SELECT DEFAULT_COLLATION_NAME FROM information_schema\.SCHEMATA "
                r"WHERE SCHEMA_NAME = '[^']*' LIMIT 1$"
            ),
            [("utf8_general_ci",)],
            ["DEFAULT_COLLATION_NAME"],
        ),
        CannedResult(
            "SHOW DATABASES",
            [("information_schema",), ("mysql",), ("pma_test",), ("test",)],
            ["Database"],
        ),
        CannedResult(re.compile(r"^SET "), [], [], affected_rows=0),
        CannedResult(
            re.compile(
                r"^SELECT .* FROM `information_schema`\.`TABLES` t "
                r"WHERE t\.`TABLE_SCHEMA` = 'test'"
            ),
            _information_schema_rows(),
            list(INFORMATION_SCHEMA_COLUMNS),
        ),
        CannedResult(
            re.compile(r"^SHOW TABLE STATUS FROM `test`"),
            _table_status_rows(),
            list(_TABLE_STATUS_COLUMNS),
        ),
        CannedResult(
            re.compile(
                r"^SELECT TABLE_NAME, COLUMN_NAME, REFERENCED_TABLE_NAME, "
                r"REFERENCED_COLUMN_NAME FROM information_schema\.key_column_usage "
                r"WHERE referenced_table_name IS NOT NULL AND TABLE_SCHEMA = 'test'"
            ),
            [("table2", "idtable2", "table1", "idtable1")],
            ["TABLE_NAME", "COLUMN_NAME", "REFERENCED_TABLE_NAME", "REFERENCED_COLUMN_NAME"],
        ),
    ]


class DummyDriver(DatabaseDriver):
    """Driver answering from canned results, used by tests and demos.

    Example:
        >>> driver = DummyDriver()
        >>> driver.set_result("SELECT 2", [(2,)], ["2"])
        >>> dbi = DatabaseInterface(driver, {"Server": {"user": "root"}})
    """

    driver_name = "dummy"

    def __init__(
        self,
        results: Optional[Iterable[CannedResult]] = None,
        *,
        connect_error: Optional[Tuple[int, str]] = None,
        databases: Optional[Iterable[str]] = None,
    ) -> None:
        self._results: List[CannedResult] = list(
            results if results is not None else default_results()
        )
        self._connect_error: Tuple[int, str] = (0, "")
        self.connect_error = connect_error
        self.databases = set(databases) if databases is not None else None
        self.executed: List[str] = []
        self.connections: List[DummyConnection] = []

    def set_result(
        self,
        query: Union[str, Pattern[str]],
        rows: Optional[List[Sequence[Any]]],
        columns: Optional[List[str]] = None,
        *,
        metadata: Optional[List[FieldMeta]] = None,
        describe: bool = True,
        affected_rows: Optional[int] = None,
    ) -> None:
        """Register an answer taking precedence over earlier ones."""
        self._results.insert(
            0,
            CannedResult(
                query,
                rows,
                list(columns or []),
                metadata=metadata,
                describe=describe,
                affected_rows=affected_rows,
            ),
        )

    def set_error(self, query: Union[str, Pattern[str]], errno: int, message: str) -> None:
        """Make ``query`` fail with the given server error."""
        self._results.insert(0, CannedResult(query, None, error=(errno, message)))

    def _find(self, sql: str) -> Optional[CannedResult]:
        for canned in self._results:
            if canned.matches(sql):
                return canned
        return None

    def connect(self, user: str, password: str, params: ConnectionParams) -> Optional[DummyConnection]:
        if self.connect_error is not None:
            self._connect_error = self.connect_error
            return None
        self._connect_error = (0, "")
        handle = DummyConnection(user=user, params=params)
        self.connections.append(handle)
        return handle

    def query(self, handle: DummyConnection, sql: str, options: QueryOptions) -> Optional[DummyResult]:
        normalized = normalize_sql(sql)
        self.executed.append(normalized)
        canned = self._find(normalized)
        if canned is None:
            handle.error = (ER_PARSE_ERROR, f"Not supported query: {normalized}")
            return None
        if canned.rows is None:
            handle.error = canned.error if canned.error[0] else (ER_PARSE_ERROR, canned.error[1])
            return None

        rows = [tuple(row) for row in canned.rows]
        handle.error = (0, "")
        handle.affected_rows = (
            canned.affected_rows if canned.affected_rows is not None else len(rows)
        )
        return DummyResult(canned=canned, rows=rows, buffered=not (options & QueryOptions.UNBUFFERED))

    def fetch_row(self, result: DummyResult) -> Optional[Tuple[Any, ...]]:
        if result.freed or result.position >= len(result.rows):
            return None
        row = result.rows[result.position]
        result.position += 1
        return row

    def fields_meta(self, result: DummyResult) -> Optional[List[FieldMeta]]:
        canned = result.canned
        if not canned.describe:
            return None
        if canned.metadata is not None:
            return list(canned.metadata)
        return [FieldMeta(name=column) for column in canned.columns]

    def escape_string(self, handle: Any, text: str) -> str:
        return escape_string(text)

    def last_error(self, handle: Optional[DummyConnection]) -> Tuple[int, str]:
        if handle is None:
            return self._connect_error
        return handle.error

    def num_rows(self, result: DummyResult) -> int:
        return len(result.rows) if result.buffered else result.position

    def affected_rows(self, handle: DummyConnection) -> int:
        return handle.affected_rows

    def data_seek(self, result: DummyResult, offset: int) -> bool:
        if not result.buffered or result.freed or not 0 <= offset <= len(result.rows):
            return False
        result.position = offset
        return True

    def free_result(self, result: DummyResult) -> None:
        result.freed = True

    def select_db(self, handle: DummyConnection, database: str) -> bool:
        if self.databases is not None and database not in self.databases:
            handle.error = (ER_BAD_DB_ERROR, f"Unknown database '{database}'")
            return False
        handle.database = database
        handle.error = (0, "")
        return True

    def close(self, handle: DummyConnection) -> None:
        handle.closed = True
