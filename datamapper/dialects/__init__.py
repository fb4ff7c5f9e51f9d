"""Database dialects, picked by URL scheme."""

from typing import Optional

from .base import DatabaseUrl, Dialect
from .mysql import MysqlDialect
from .postgres import PostgresDialect
from .sqlite import SqliteDialect
from .sqlserver import SqlserverDialect

DIALECTS_BY_SCHEME: dict[str, type[Dialect]] = {
    scheme: dialect_class
    for dialect_class in (SqliteDialect, MysqlDialect, PostgresDialect, SqlserverDialect)
    for scheme in dialect_class.SUPPORTED_SCHEMA
}


def get_dialect_for_scheme(scheme: Optional[str]) -> Dialect:
    """Dialect for a URL scheme; a driver suffix is ignored (``postgresql+psycopg2``).

    Raises:
        ValueError: when no dialect handles the scheme.
    """
    dialect_class = DIALECTS_BY_SCHEME.get((scheme or "").split("+")[0].lower())
    if dialect_class is None:
        raise ValueError(f"Unsupported database scheme: {scheme}")
    return dialect_class()


__all__ = [
    "DIALECTS_BY_SCHEME",
    "DatabaseUrl",
    "Dialect",
    "MysqlDialect",
    "PostgresDialect",
    "SqliteDialect",
    "SqlserverDialect",
    "get_dialect_for_scheme",
]
