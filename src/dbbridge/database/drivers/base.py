# src/dbbridge/database/drivers/base.py
"""Low-level driver contract.

Concrete drivers wrap one client library (or an in-memory fake) behind the
primitive operations the connection manager and the query executor need.
Drivers never raise for server-side failures: they return ``None`` and
report the failure through ``last_error``.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from ..models import ConnectionParams, FieldMeta, QueryOptions


class DatabaseDriver(ABC):
    """Capability interface implemented by every backend driver.

    Handles and result objects are opaque to callers; only the driver that
    produced them may interpret them.
    """

    driver_name: str = "unknown"

    @abstractmethod
    def connect(self, user: str, password: str, params: ConnectionParams) -> Optional[Any]:
        """Open a connection, returning a handle or ``None`` on failure.

        The failure is readable through ``last_error(None)``.
        """

    @abstractmethod
    def query(self, handle: Any, sql: str, options: QueryOptions) -> Optional[Any]:
        """Run a statement, returning a result object or ``None`` on failure."""

    @abstractmethod
    def fetch_row(self, result: Any) -> Optional[Tuple[Any, ...]]:
        """Return the next row as a tuple, or ``None`` once exhausted."""

    @abstractmethod
    def fields_meta(self, result: Any) -> Optional[List[FieldMeta]]:
        """Describe the result columns.

        Returns ``None`` when the driver cannot report per-column metadata.
        Statements without a result set yield an empty list.
        """

    @abstractmethod
    def escape_string(self, handle: Any, text: str) -> str:
        """Escape ``text`` for use inside a quoted SQL string literal."""

    @abstractmethod
    def last_error(self, handle: Optional[Any]) -> Tuple[int, str]:
        """Return ``(errno, message)`` of the last failure, ``(0, "")`` if none.

        ``handle`` is ``None`` for errors raised while connecting.
        """

    @abstractmethod
    def num_rows(self, result: Any) -> int:
        """Number of rows in a buffered result."""

    @abstractmethod
    def affected_rows(self, handle: Any) -> int:
        """Rows affected by the last statement on ``handle``."""

    @abstractmethod
    def data_seek(self, result: Any, offset: int) -> bool:
        """Move the row cursor of a buffered result."""

    @abstractmethod
    def free_result(self, result: Any) -> None:
        """Release a result object."""

    @abstractmethod
    def select_db(self, handle: Any, database: str) -> bool:
        """Change the default database of ``handle``."""

    @abstractmethod
    def close(self, handle: Any) -> None:
        """Close the connection behind ``handle``."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(driver={self.driver_name!r})"
