"""SQLite, through the standard library driver."""

import logging
import sqlite3
from typing import ClassVar

from .base import Dialect

logger = logging.getLogger(__name__)


class SqliteDialect(Dialect):
    """``sqlite:///relative/path.db``, ``sqlite:////absolute/path.db`` or ``sqlite://`` (in memory)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)

    def connect(self, url: str) -> sqlite3.Connection:
        parts = self.parse_url(url)
        path = parts.database or parts.host or ":memory:"
        logger.info("Connecting to SQLite database %s", path)
        connection = sqlite3.connect(path)
        connection.execute("PRAGMA foreign_keys = ON")
        return connection
