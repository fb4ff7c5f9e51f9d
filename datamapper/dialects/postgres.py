"""PostgreSQL, through psycopg2 (``pip install datamapper[postgres]``)."""

from typing import Any, ClassVar

from .base import Dialect


class PostgresDialect(Dialect):
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("postgresql", "postgres")
    PARAMSTYLE: ClassVar[str] = "format"
    DEFAULT_PORT: ClassVar[int] = 5432

    def connect(self, url: str):
        import psycopg2  # pylint: disable=import-outside-toplevel,import-error
        parts = self.parse_url(url)
        return psycopg2.connect(host=parts.host, port=parts.port, user=parts.user,
                                password=parts.password, database=parts.database)

    def last_insert_id(self, cursor: Any, connection: Any) -> Any:
        """Value last produced by a sequence in this session (cursor ``lastrowid`` is an OID)."""
        id_cursor = connection.cursor()
        try:
            id_cursor.execute("SELECT lastval()")
            return id_cursor.fetchone()[0]
        finally:
            id_cursor.close()
