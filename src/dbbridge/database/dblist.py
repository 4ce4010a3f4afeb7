# src/dbbridge/database/dblist.py
"""Databases visible to the current user."""

import re
from typing import Iterable, Iterator, List, Optional

from dbbridge.config.models import ServerConfig
from dbbridge.core.utils import SqlUtils
from dbbridge.logging import get_logger

from .executor import QueryExecutor
from .models import ConnectionRole

logger = get_logger("database.dblist")


class DatabaseList:
    """Server databases filtered by ``only_db`` and ``hide_db``.

    ``only_db`` holds SQL LIKE patterns; an empty list or a ``*`` entry
    shows every database. Databases are listed in ``only_db`` pattern
    order, each pattern contributing its matches in server order.
    ``hide_db`` is a regular expression removing matching names.
    """

    def __init__(
        self,
        names: Iterable[str],
        only_db: Optional[List[str]] = None,
        hide_db: Optional[str] = None,
    ) -> None:
        self.only_db = list(only_db or [])
        self.hide_db = hide_db
        self._names = self._filter(list(names))

    def _filter(self, names: List[str]) -> List[str]:
        if self.only_db and "*" not in self.only_db:
            selected: List[str] = []
            for pattern in self.only_db:
                regex = SqlUtils.like_to_regex(pattern)
                selected.extend(
                    name for name in names if regex.match(name) and name not in selected
                )
            names = selected
        if self.hide_db:
            hidden = re.compile(self.hide_db)
            names = [name for name in names if not hidden.search(name)]
        return names

    @classmethod
    def from_server(
        cls,
        executor: QueryExecutor,
        server: ServerConfig,
        role: ConnectionRole = ConnectionRole.PRIMARY,
    ) -> "DatabaseList":
        """Read ``SHOW DATABASES`` and apply the server's visibility settings."""
        names = [str(name) for name in executor.fetch_result("SHOW DATABASES", role=role)]
        database_list = cls(names, only_db=server.only_db, hide_db=server.hide_db)
        logger.debug(
            "Database list built",
            server_databases=len(names),
            visible_databases=len(database_list),
        )
        return database_list

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def exists(self, *names: str) -> bool:
        """Whether every one of ``names`` is visible."""
        return all(name in self._names for name in names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"DatabaseList({self._names!r})"
