# src/dbbridge/database/models.py
"""Database models shared by the connection, execution and metadata layers."""

from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any, Dict, Mapping, Optional, Tuple

from ..core.utils import SortUtils


class ConnectionRole(Enum):
    """Independent connection purposes, each with its own credentials and handle."""
    PRIMARY = "primary"
    CONTROL = "control"


class QueryOptions(IntFlag):
    """Result set handling for executed statements."""
    BUFFERED = 1
    UNBUFFERED = 2


@dataclass(frozen=True)
class ConnectionParams:
    """Resolved connection parameters for one role.

    Only PRIMARY parameter sets carry credentials; CONTROL sets carry the
    connection shape alone.
    """
    host: str
    socket: Optional[str]
    port: int
    ssl: bool
    compress: bool
    ssl_options: Dict[str, Any] = field(default_factory=dict)
    user: Optional[str] = None
    password: Optional[str] = None
    controluser: Optional[str] = None
    controlpass: Optional[str] = None
    control_ssl: Optional[bool] = None

    def as_dict(self) -> Dict[str, Any]:
        """Return the parameter set, omitting role fields that are not carried."""
        data: Dict[str, Any] = {}
        for name in ("user", "password"):
            if getattr(self, name) is not None:
                data[name] = getattr(self, name)
        data.update(
            host=self.host,
            socket=self.socket,
            port=self.port,
            ssl=self.ssl,
            compress=self.compress,
        )
        for name in ("controluser", "controlpass", "control_ssl"):
            if getattr(self, name) is not None:
                data[name] = getattr(self, name)
        if self.ssl_options:
            data["ssl_options"] = dict(self.ssl_options)
        return data


@dataclass(frozen=True)
class FieldMeta:
    """Per-column metadata of a result set."""
    name: str
    table: str = ""
    org_name: Optional[str] = None
    org_table: Optional[str] = None
    db: Optional[str] = None


@dataclass(frozen=True)
class DebugQuery:
    """One entry of the SQL debug log."""
    query: str
    role: str
    duration: float = 0.0
    count: int = 1
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "role": self.role,
            "duration": self.duration,
            "count": self.count,
            "error": self.error,
        }


@dataclass(frozen=True)
class ForeignKeyConstraint:
    """A column referencing another table's column."""
    table_name: str
    column_name: str
    referenced_table_name: str
    referenced_column_name: str


@dataclass(frozen=True)
class ColumnMapEntry:
    """Origin of one result column of a view definition."""
    table_name: str
    referring_column: str
    real_column: Optional[str]


# (attribute, information_schema column, legacy SHOW TABLE STATUS column)
TABLE_COLUMNS: Tuple[Tuple[str, str, Optional[str]], ...] = (
    ("catalog", "TABLE_CATALOG", None),
    ("schema", "TABLE_SCHEMA", "Db"),
    ("name", "TABLE_NAME", "Name"),
    ("table_type", "TABLE_TYPE", None),
    ("engine", "ENGINE", "Engine"),
    ("version", "VERSION", "Version"),
    ("row_format", "ROW_FORMAT", "Row_format"),
    ("rows", "TABLE_ROWS", "Rows"),
    ("avg_row_length", "AVG_ROW_LENGTH", "Avg_row_length"),
    ("data_length", "DATA_LENGTH", "Data_length"),
    ("max_data_length", "MAX_DATA_LENGTH", "Max_data_length"),
    ("index_length", "INDEX_LENGTH", "Index_length"),
    ("data_free", "DATA_FREE", "Data_free"),
    ("auto_increment", "AUTO_INCREMENT", "Auto_increment"),
    ("create_time", "CREATE_TIME", "Create_time"),
    ("update_time", "UPDATE_TIME", "Update_time"),
    ("check_time", "CHECK_TIME", "Check_time"),
    ("collation", "TABLE_COLLATION", "Collation"),
    ("checksum", "CHECKSUM", "Checksum"),
    ("create_options", "CREATE_OPTIONS", "Create_options"),
    ("comment", "TABLE_COMMENT", "Comment"),
)

NUMERIC_ATTRIBUTES = frozenset({
    "version", "rows", "avg_row_length", "data_length", "max_data_length",
    "index_length", "data_free", "auto_increment",
})

INFORMATION_SCHEMA_COLUMNS: Tuple[str, ...] = tuple(column for _, column, _ in TABLE_COLUMNS)

# sortable names (either key family, plus the legacy "Type" alias) -> attribute
SORT_ATTRIBUTES: Dict[str, str] = {
    **{column: attr for attr, column, _ in TABLE_COLUMNS},
    **{legacy: attr for attr, _, legacy in TABLE_COLUMNS if legacy},
    "Type": "engine",
}

ATTRIBUTE_COLUMNS: Dict[str, str] = {attr: column for attr, column, _ in TABLE_COLUMNS}


@dataclass
class TableRecord:
    """Canonical table metadata.

    A single record is stored once and rendered into both key families by
    ``as_dict``: the information_schema names (``TABLE_NAME``, ``ENGINE`` ...)
    and the historical ``SHOW TABLE STATUS`` names (``Name``, ``Engine`` ...).
    """
    schema: str
    name: str
    catalog: Optional[str] = "def"
    table_type: Optional[str] = "BASE TABLE"
    engine: Optional[Any] = None
    version: Optional[Any] = None
    row_format: Optional[Any] = None
    rows: Optional[Any] = None
    avg_row_length: Optional[Any] = None
    data_length: Optional[Any] = None
    max_data_length: Optional[Any] = None
    index_length: Optional[Any] = None
    data_free: Optional[Any] = None
    auto_increment: Optional[Any] = None
    create_time: Optional[Any] = None
    update_time: Optional[Any] = None
    check_time: Optional[Any] = None
    collation: Optional[Any] = None
    checksum: Optional[Any] = None
    create_options: Optional[Any] = None
    comment: Optional[Any] = None

    @classmethod
    def from_information_schema(cls, row: Mapping[str, Any]) -> "TableRecord":
        """Build a record from an ``information_schema.TABLES`` row."""
        values = {attr: row.get(column) for attr, column, _ in TABLE_COLUMNS}
        values["schema"] = values["schema"] or ""
        values["name"] = values["name"] or ""
        return cls(**values)

    @classmethod
    def from_table_status(cls, database: str, row: Mapping[str, Any]) -> "TableRecord":
        """Build a record from a ``SHOW TABLE STATUS`` row.

        The legacy command has no catalog or table type columns; the type
        is derived from the comment, engine and owning database.
        """
        values = {attr: row.get(legacy) for attr, _, legacy in TABLE_COLUMNS if legacy}
        values["schema"] = database
        values["name"] = values["name"] or ""
        if values.get("engine") is None and str(values.get("comment") or "").upper() == "VIEW":
            table_type = "VIEW"
        elif database.lower() == "information_schema":
            table_type = "SYSTEM VIEW"
        else:
            table_type = "BASE TABLE"
        return cls(catalog="def", table_type=table_type, **values)

    @property
    def is_view(self) -> bool:
        return self.table_type != "BASE TABLE"

    @property
    def total_length(self) -> float:
        """Data plus index length, used for size ordering."""
        return SortUtils.to_number(self.data_length) + SortUtils.to_number(self.index_length)

    def as_dict(self) -> Dict[str, Any]:
        """Render both key families from the canonical values."""
        data: Dict[str, Any] = {column: getattr(self, attr) for attr, column, _ in TABLE_COLUMNS}
        for attr, _, legacy in TABLE_COLUMNS:
            if legacy is None:
                continue
            data[legacy] = getattr(self, attr)
            if legacy == "Engine":
                data["Type"] = self.engine
        return data
