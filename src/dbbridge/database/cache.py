# src/dbbridge/database/cache.py
"""Per-database cache of table metadata.

Entries never expire. They are overwritten by fresh retrievals and removed
only when the caller clears them, typically after a schema change.
"""

import threading
from typing import Any, Dict, Iterable, List, Optional

from dbbridge.logging import get_logger

from .models import TableRecord


class TableCache:
    """Table records keyed by database, then table name.

    Example:
        >>> cache = TableCache()
        >>> cache.store("test", [TableRecord(schema="test", name="t1")])
        >>> list(cache.get_cached(["test"]))
        ['t1']
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: Dict[str, Dict[str, TableRecord]] = {}
        self.logger = get_logger("database.cache")

    def store(self, database: str, records: Iterable[TableRecord]) -> int:
        """Write ``records`` for ``database``, keeping tables absent from them."""
        stored = 0
        with self._lock:
            tables = self._tables.setdefault(database, {})
            for record in records:
                tables[record.name] = record
                stored += 1
        self.logger.debug("Table metadata cached", database=database, tables=stored)
        return stored

    def get(self, database: str, table: str) -> Optional[TableRecord]:
        with self._lock:
            return self._tables.get(database, {}).get(table)

    def get_cached(self, databases: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Union of cached tables of ``databases``, rendered with both key families.

        Databases without cached entries contribute nothing. When two of the
        requested databases hold a table of the same name the later one wins.
        """
        content: Dict[str, Dict[str, Any]] = {}
        with self._lock:
            for database in databases:
                for name, record in self._tables.get(database, {}).items():
                    content[name] = record.as_dict()
        return content

    def clear(self, databases: Optional[Iterable[str]] = None) -> None:
        """Drop every entry, or only those of ``databases``."""
        with self._lock:
            if databases is None:
                self._tables.clear()
                cleared: List[str] = ["*"]
            else:
                cleared = list(databases)
                for database in cleared:
                    self._tables.pop(database, None)
        self.logger.debug("Table metadata cache cleared", databases=cleared)

    def databases(self) -> List[str]:
        with self._lock:
            return list(self._tables)

    def __contains__(self, database: object) -> bool:
        with self._lock:
            return database in self._tables

    def __len__(self) -> int:
        with self._lock:
            return sum(len(tables) for tables in self._tables.values())
