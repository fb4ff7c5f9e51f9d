"""SQL Server, through pyodbc (``pip install datamapper[sqlserver]``)."""

from typing import Any, ClassVar

from .base import Dialect

ODBC_DRIVER = "ODBC Driver 17 for SQL Server"


class SqlserverDialect(Dialect):
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mssql", "sqlserver")
    DEFAULT_PORT: ClassVar[int] = 1433

    def connection_string(self, url: str) -> str:
        """ODBC connection string; the port is only given when it is not the default one."""
        parts = self.parse_url(url)
        server = parts.host or "localhost"
        if parts.port != self.DEFAULT_PORT:
            server = f"{server},{parts.port}"
        options = {
            "DRIVER": f"{{{ODBC_DRIVER}}}",
            "SERVER": server,
            "DATABASE": parts.database or "",
            "UID": parts.user or "",
            "PWD": parts.password or "",
        }
        return ";".join(f"{key}={value}" for key, value in options.items())

    def connect(self, url: str):
        import pyodbc  # pylint: disable=import-outside-toplevel,import-error
        return pyodbc.connect(self.connection_string(url))

    def last_insert_id(self, cursor: Any, connection: Any) -> Any:
        cursor.execute("SELECT SCOPE_IDENTITY()")
        return cursor.fetchone()[0]
