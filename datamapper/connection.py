"""Database connection handling: the Execution protocol and its DB-API implementation."""

import logging
import urllib.parse
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

from .dialects import Dialect, get_dialect_for_scheme

logger = logging.getLogger(__name__)


@runtime_checkable
class Execution(Protocol):
    """What repositories need from a database: run SQL and read write results."""

    def execute(self, sql: str, parameters: Iterable[Any] = ()) -> list[dict[str, Any]]:
        """Run one statement with ``?`` placeholders; return the rows as dicts (empty for writes)."""
        ...

    def last_insert_id(self) -> Any:
        """Primary key generated by the last INSERT."""
        ...

    def affected_rows(self) -> int:
        """Number of rows changed by the last write statement."""
        ...


class Connection:
    """Execution over a DB-API connection.

    Statements use ``?`` placeholders; the dialect rewrites them for drivers
    using another parameter style. With ``autocommit`` (the default), every
    statement that returns no result set is committed right away.
    """

    def __init__(self, raw: Any, dialect: Dialect, autocommit: bool = True):
        self.raw = raw
        self.dialect = dialect
        self.autocommit = autocommit
        self._last_insert_id: Any = None
        self._affected_rows: int = 0

    def execute(self, sql: str, parameters: Iterable[Any] = ()) -> list[dict[str, Any]]:
        parameters = tuple(parameters)
        logger.debug("%s %s", sql, parameters)
        cursor = self.raw.cursor()
        try:
            cursor.execute(self.dialect.prepare(sql), parameters)
            if cursor.description is None:
                self._affected_rows = cursor.rowcount
                if sql.lstrip().upper().startswith("INSERT"):
                    self._last_insert_id = self.dialect.last_insert_id(cursor, self.raw)
                if self.autocommit:
                    self.raw.commit()
                return []
            names = [column[0] for column in cursor.description]
            return [dict(zip(names, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def last_insert_id(self) -> Any:
        return self._last_insert_id

    def affected_rows(self) -> int:
        return self._affected_rows

    def commit(self):
        self.raw.commit()

    def rollback(self):
        self.raw.rollback()

    def close(self):
        self.raw.close()


def connect(database_url: str, autocommit: bool = True, dialect: Optional[Dialect] = None) -> Connection:
    """Open a connection for a database URL (``sqlite:///path``, ``mysql://...``, ``postgresql://...``).

    Args:
        database_url: URL whose scheme selects the dialect.
        autocommit: Commit after every write statement.
        dialect: Use this dialect instead of the one picked from the scheme.

    Raises:
        ValueError: when the URL scheme is not supported.
    """
    if not isinstance(database_url, str):
        raise ValueError("`database_url` should be a str")
    if dialect is None:
        dialect = get_dialect_for_scheme(urllib.parse.urlparse(database_url).scheme)
    return Connection(dialect.connect(database_url), dialect, autocommit=autocommit)


__all__ = ["Execution", "Connection", "connect"]
