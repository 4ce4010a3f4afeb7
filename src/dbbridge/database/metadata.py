# src/dbbridge/database/metadata.py
"""Table, foreign key, column map and collation metadata.

Table metadata comes from one of two sources chosen per call: the
``information_schema`` catalog, which filters, orders and windows on the
server, or the legacy ``SHOW TABLE STATUS`` command, whose rows are
filtered, ordered and windowed in memory. Both produce ``TableRecord``
objects, so callers see the same shape whichever source ran.

Classes:
    TableQuery: Validated arguments of one table listing
    InformationSchemaSource: Catalog based table listing
    TableStatusSource: SHOW TABLE STATUS based table listing
    MetadataService: Entry point used by the session facade
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from dbbridge.config.models import DbBridgeConfig
from dbbridge.core.exceptions import ErrorCodes, MetadataError, ValidationError
from dbbridge.core.utils import SortUtils, SqlUtils
from dbbridge.logging import get_logger, get_performance_logger

from .cache import TableCache
from .executor import QueryExecutor
from .models import (
    ATTRIBUTE_COLUMNS,
    INFORMATION_SCHEMA_COLUMNS,
    NUMERIC_ATTRIBUTES,
    SORT_ATTRIBUTES,
    ColumnMapEntry,
    ConnectionRole,
    ForeignKeyConstraint,
    TableRecord,
)
from .versions import DEFAULT_COLLATION, is_system_schema

TableFilter = Union[None, str, Sequence[str]]

SORT_ORDERS = ("ASC", "DESC")
TABLE_TYPES = ("view", "table")

# LIMIT without an upper bound, for offsets without a count
_NO_LIMIT = 18446744073709551615


def build_table_condition(
    table: TableFilter,
    is_group: bool,
    table_type: Optional[str],
    escape: Callable[[str], str],
) -> str:
    """Build the ``AND ...`` filter on ``information_schema.TABLES`` rows.

    A list of names becomes an ``IN`` predicate and ignores ``is_group``.
    A single name is matched exactly, or as a prefix excluding the prefix
    itself when ``is_group`` is set.

    Example:
        >>> build_table_condition(["car", "manuf"], False, "view", str)
        "AND t.`TABLE_NAME` IN ('car', 'manuf') AND t.`TABLE_TYPE` != 'BASE TABLE'"
    """
    conditions: List[str] = []
    if isinstance(table, str):
        if table:
            if is_group:
                conditions.append(
                    f"t.`TABLE_NAME` LIKE '{SqlUtils.escape_wildcards(escape(table))}%'"
                )
                conditions.append(f"t.`TABLE_NAME` != '{escape(table)}'")
            else:
                conditions.append(f"t.`TABLE_NAME` = '{escape(table)}'")
    elif table:
        names = ", ".join(f"'{escape(name)}'" for name in table)
        conditions.append(f"t.`TABLE_NAME` IN ({names})")

    if table_type == "view":
        conditions.append("t.`TABLE_TYPE` != 'BASE TABLE'")
    elif table_type == "table":
        conditions.append("t.`TABLE_TYPE` = 'BASE TABLE'")

    return " ".join(f"AND {condition}" for condition in conditions)


@dataclass(frozen=True)
class TableQuery:
    """Arguments of one table listing, validated by ``MetadataService``."""

    database: str
    table: TableFilter = None
    is_group: bool = False
    offset: int = 0
    count: Optional[int] = None
    sort_by: str = "Name"
    sort_order: str = "ASC"
    table_type: Optional[str] = None

    @property
    def sort_attribute(self) -> str:
        return SORT_ATTRIBUTES[self.sort_by]

    @property
    def descending(self) -> bool:
        return self.sort_order == "DESC"

    def matches(self, record: TableRecord) -> bool:
        """Apply the name and type filters to a record in memory."""
        table = self.table
        if isinstance(table, str):
            if table:
                if self.is_group:
                    prefix = SqlUtils.like_to_regex(SqlUtils.escape_wildcards(table) + "%")
                    if not prefix.match(record.name) or record.name.lower() == table.lower():
                        return False
                elif record.name != table:
                    return False
        elif table and record.name not in set(table):
            return False

        if self.table_type == "view" and not record.is_view:
            return False
        if self.table_type == "table" and record.is_view:
            return False
        return True


class TableSource(ABC):
    """Strategy producing the table records of one database."""

    name: str = "unknown"
    # whether ordering and windowing already happened on the server
    windowed: bool = False

    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor

    def _run(self, sql: str, query: TableQuery, role: ConnectionRole) -> List[Dict[str, Any]]:
        result = self.executor.try_query(sql, role, cache_affected_rows=False)
        if result is None:
            raise MetadataError(
                self.executor.get_error(role) or "Table metadata query failed",
                errno=self.executor.get_errno(role),
                code=ErrorCodes.METADATA_UNAVAILABLE,
                context={"database": query.database, "source": self.name, "query": sql},
            )
        with result:
            return list(result.iter_assoc())

    @abstractmethod
    def fetch(self, query: TableQuery, role: ConnectionRole) -> List[TableRecord]:
        """Return the records matching ``query``."""


class InformationSchemaSource(TableSource):
    """Reads ``information_schema.TABLES`` with filters, order and window in SQL."""

    name = "information_schema"
    windowed = True

    def build_sql(self, query: TableQuery, role: ConnectionRole) -> str:
        def escape(text: str) -> str:
            return self.executor.escape_string(text, role)

        columns = ", ".join(f"t.`{column}`" for column in INFORMATION_SCHEMA_COLUMNS)
        sql = (
            f"SELECT {columns} FROM `information_schema`.`TABLES` t "
            f"WHERE t.`TABLE_SCHEMA` = '{escape(query.database)}'"
        )
        condition = build_table_condition(query.table, query.is_group, query.table_type, escape)
        if condition:
            sql += " " + condition

        attribute = query.sort_attribute
        if attribute == "data_length":
            order_by = "t.`DATA_LENGTH` + t.`INDEX_LENGTH`"
        else:
            order_by = f"t.`{ATTRIBUTE_COLUMNS[attribute]}`"
        sql += f" ORDER BY {order_by} {query.sort_order}"

        if query.count is not None:
            sql += f" LIMIT {query.count} OFFSET {query.offset}"
        elif query.offset:
            sql += f" LIMIT {_NO_LIMIT} OFFSET {query.offset}"
        return sql

    def fetch(self, query: TableQuery, role: ConnectionRole) -> List[TableRecord]:
        rows = self._run(self.build_sql(query, role), query, role)
        return [TableRecord.from_information_schema(row) for row in rows]


class TableStatusSource(TableSource):
    """Reads ``SHOW TABLE STATUS`` and filters the rows in memory."""

    name = "table_status"
    windowed = False

    def build_sql(self, query: TableQuery, role: ConnectionRole) -> str:
        sql = f"SHOW TABLE STATUS FROM {SqlUtils.backquote(query.database)}"
        if isinstance(query.table, str) and query.table:
            escaped = self.executor.escape_string(query.table, role)
            sql += f" LIKE '{SqlUtils.escape_wildcards(escaped)}%'"
        return sql

    def fetch(self, query: TableQuery, role: ConnectionRole) -> List[TableRecord]:
        rows = self._run(self.build_sql(query, role), query, role)
        records = (TableRecord.from_table_status(query.database, row) for row in rows)
        return [record for record in records if query.matches(record)]


class MetadataService:
    """Retrieves metadata through a QueryExecutor and fills the table cache."""

    def __init__(self, executor: QueryExecutor, cache: TableCache, config: DbBridgeConfig) -> None:
        self.executor = executor
        self.cache = cache
        self.config = config
        self.logger = get_logger("database.metadata")
        self.perf_logger = get_performance_logger("database.metadata")
        self.information_schema = InformationSchemaSource(executor)
        self.table_status = TableStatusSource(executor)

    def select_source(self) -> TableSource:
        """The catalog unless information_schema use is disabled."""
        if self.config.server.disable_is:
            return self.table_status
        return self.information_schema

    def _resolve_count(self, limit_count: Union[bool, int, None]) -> Optional[int]:
        if isinstance(limit_count, bool):
            return self.config.max_table_list if limit_count else None
        if limit_count and limit_count > 0:
            return int(limit_count)
        return None

    def build_query(
        self,
        database: str,
        table: TableFilter = None,
        tbl_is_group: bool = False,
        limit_offset: int = 0,
        limit_count: Union[bool, int, None] = False,
        sort_by: str = "Name",
        sort_order: str = "ASC",
        table_type: Optional[str] = None,
    ) -> TableQuery:
        """Validate listing arguments.

        Raises:
            ValidationError: On an unknown sort column, sort order or table
                type, or a negative offset
        """
        if sort_by not in SORT_ATTRIBUTES:
            raise ValidationError(
                f"Unknown sort column: {sort_by}",
                code=ErrorCodes.INVALID_ARGUMENT,
                context={"sort_by": sort_by},
            )
        order = (sort_order or "").upper()
        if order not in SORT_ORDERS:
            raise ValidationError(
                f"Unknown sort order: {sort_order}",
                code=ErrorCodes.INVALID_ARGUMENT,
                context={"sort_order": sort_order},
            )
        if table_type is not None and table_type not in TABLE_TYPES:
            raise ValidationError(
                f"Unknown table type: {table_type}",
                code=ErrorCodes.INVALID_ARGUMENT,
                context={"table_type": table_type},
            )
        if limit_offset < 0:
            raise ValidationError(
                f"Offset must not be negative: {limit_offset}",
                code=ErrorCodes.INVALID_ARGUMENT,
                context={"limit_offset": limit_offset},
            )
        if table is not None and not isinstance(table, str):
            table = tuple(table)
        return TableQuery(
            database=database,
            table=table,
            is_group=tbl_is_group,
            offset=limit_offset,
            count=self._resolve_count(limit_count),
            sort_by=sort_by,
            sort_order=order,
            table_type=table_type,
        )

    def _sort_key(self, attribute: str) -> Callable[[TableRecord], Any]:
        if attribute == "name" and self.config.natural_order:
            return lambda record: SortUtils.natural_key(record.name)
        if attribute == "data_length":
            return lambda record: record.total_length
        if attribute in NUMERIC_ATTRIBUTES:
            return lambda record: SortUtils.to_number(getattr(record, attribute))

        def text_key(record: TableRecord) -> Tuple[bool, str]:
            value = getattr(record, attribute)
            return value is not None, str(value if value is not None else "").lower()
        return text_key

    def _order(self, records: List[TableRecord], query: TableQuery) -> List[TableRecord]:
        return sorted(records, key=self._sort_key(query.sort_attribute), reverse=query.descending)

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
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> Dict[str, Dict[str, Any]]:
        """List the tables of ``database`` with full status information.

        Args:
            database: Database to list
            table: Exact name, group prefix or list of names to restrict to
            tbl_is_group: Treat a single ``table`` as a prefix
            limit_offset: Rows to skip
            limit_count: True for ``MaxTableList`` rows, a positive number
                for that many, falsy for all
            sort_by: Column to order by, in either key family
            sort_order: ASC or DESC
            table_type: ``view`` or ``table`` to keep only that kind
            role: Connection role to query on

        Returns:
            Table name to record, every record carrying both key families

        Raises:
            ValidationError: On invalid arguments
            MetadataError: If no source could list the tables
        """
        query = self.build_query(
            database,
            table,
            tbl_is_group,
            limit_offset,
            limit_count,
            sort_by,
            sort_order,
            table_type,
        )
        source = self.select_source()

        with self.perf_logger.measure("get_tables_full", database=database):
            try:
                records = source.fetch(query, role)
            except MetadataError as e:
                if source is self.table_status:
                    raise
                self.logger.warning(
                    "Catalog table listing failed, using SHOW TABLE STATUS",
                    database=database,
                    error=e.message,
                )
                source = self.table_status
                records = source.fetch(query, role)

        records = self._order(records, query)
        if not source.windowed:
            records = records[query.offset:]
        if query.count is not None:
            records = records[:query.count]

        self.cache.store(database, records)
        self.logger.info(
            "Table metadata retrieved",
            database=database,
            source=source.name,
            tables=len(records),
        )
        return {record.name: record.as_dict() for record in records}

    def get_foreign_key_constraints(
        self,
        database: str,
        table_names: Iterable[str],
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> List[ForeignKeyConstraint]:
        """Foreign keys among ``table_names``, in catalog row order.

        Only constraints whose table and referenced table are both in
        ``table_names`` are returned.
        """
        names = list(table_names)
        if not names:
            return []

        def escape(text: str) -> str:
            return self.executor.escape_string(text, role)

        name_list = ", ".join(f"'{escape(name)}'" for name in names)
        sql = (
            "SELECT TABLE_NAME, COLUMN_NAME, REFERENCED_TABLE_NAME, REFERENCED_COLUMN_NAME "
            "FROM information_schema.key_column_usage "
            "WHERE referenced_table_name IS NOT NULL "
            f"AND TABLE_SCHEMA = '{escape(database)}' "
            f"AND TABLE_NAME IN ({name_list}) "
            f"AND REFERENCED_TABLE_NAME IN ({name_list});"
        )
        result = self.executor.try_query(sql, role, cache_affected_rows=False)
        if result is None:
            raise MetadataError(
                self.executor.get_error(role) or "Foreign key query failed",
                errno=self.executor.get_errno(role),
                code=ErrorCodes.METADATA_UNAVAILABLE,
                context={"database": database, "query": sql},
            )
        with result:
            return [ForeignKeyConstraint(*row[:4]) for row in result]

    def get_column_map_from_sql(
        self,
        sql_query: str,
        view_columns: Sequence[str],
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> List[ColumnMapEntry]:
        """Pair each result column of ``sql_query`` with its view column name.

        The n-th result column maps to the n-th entry of ``view_columns``,
        or to its own name when the view has no name at that position. A
        failing statement yields an empty list.

        Raises:
            MetadataError: If the driver cannot describe result columns
        """
        result = self.executor.try_query(sql_query, role, cache_affected_rows=False)
        if result is None:
            return []
        with result:
            fields = result.fields
        return [
            ColumnMapEntry(
                table_name=field.table,
                referring_column=field.name,
                real_column=view_columns[index] if index < len(view_columns) else field.name,
            )
            for index, field in enumerate(fields)
        ]

    def get_db_collation(
        self,
        database: str,
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> str:
        """Default collation of ``database``.

        System schemas answer without a query. Without information_schema
        the database is selected to read ``@@collation_database`` and the
        previously selected one is restored afterwards.
        """
        if is_system_schema(database):
            return DEFAULT_COLLATION

        if not self.config.server.disable_is:
            escaped = self.executor.escape_string(database, role)
            value = self.executor.fetch_value(
                "SELECT DEFAULT_COLLATION_NAME FROM information_schema.SCHEMATA "
                f"WHERE SCHEMA_NAME = '{escaped}' LIMIT 1",
                role=role,
            )
            return value or DEFAULT_COLLATION

        previous = self.executor.current_database(role)
        if not self.executor.select_db(database, role):
            return DEFAULT_COLLATION
        value = self.executor.fetch_value("SELECT @@collation_database", role=role)
        if previous and previous != database:
            self.executor.select_db(previous, role)
        return value or DEFAULT_COLLATION

    def get_server_collation(self, role: ConnectionRole = ConnectionRole.PRIMARY) -> str:
        value = self.executor.fetch_value("SELECT @@collation_server", role=role)
        return value or DEFAULT_COLLATION

    def set_collation(
        self,
        collation: str,
        charset_connection: str = "utf8mb4",
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> bool:
        """Set the connection collation.

        ``utf8mb4_*`` collations are rewritten to their ``utf8_*``
        counterparts when the connection charset is ``utf8``.
        """
        if charset_connection == "utf8" and collation.startswith("utf8mb4_"):
            collation = "utf8_" + collation[len("utf8mb4_"):]
        escaped = self.executor.escape_string(collation, role)
        result = self.executor.try_query(f"SET collation_connection = '{escaped}';", role)
        if result is None:
            return False
        result.free()
        return True
