"""MySQL, through PyMySQL (``pip install datamapper[mysql]``)."""

from typing import ClassVar

from .base import Dialect


class MysqlDialect(Dialect):
    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mysql",)
    PARAMSTYLE: ClassVar[str] = "format"
    DEFAULT_PORT: ClassVar[int] = 3306

    def connect(self, url: str):
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        parts = self.parse_url(url)
        return pymysql.connect(host=parts.host, port=parts.port, user=parts.user,
                               password=parts.password, database=parts.database)
