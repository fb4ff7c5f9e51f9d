"""Tests for datamapper.connection: connect() and the DB-API backed Execution."""

import pytest

from datamapper.connection import Connection, Execution, connect
from datamapper.dialects import SqliteDialect


@pytest.fixture
def sqlite_connection(tmp_path):
    conn = connect(f"sqlite:///{tmp_path / 'conn.sqlite3'}")
    conn.execute("CREATE TABLE item (id INTEGER PRIMARY KEY AUTOINCREMENT, label TEXT)")
    yield conn
    conn.close()


def test_connect_returns_execution(sqlite_connection):
    assert isinstance(sqlite_connection, Connection)
    assert isinstance(sqlite_connection, Execution)
    assert isinstance(sqlite_connection.dialect, SqliteDialect)


def test_connect_rejects_non_string():
    with pytest.raises(ValueError, match="database_url"):
        connect(123)


def test_connect_rejects_unknown_scheme():
    with pytest.raises(ValueError, match="Unsupported database scheme"):
        connect("oracle://localhost/db")


def test_select_returns_dicts(sqlite_connection):
    sqlite_connection.execute("INSERT INTO item (label) VALUES (?)", ("a",))
    sqlite_connection.execute("INSERT INTO item (label) VALUES (?)", ("b",))
    rows = sqlite_connection.execute("SELECT id, label FROM item ORDER BY id")
    assert rows == [{"id": 1, "label": "a"}, {"id": 2, "label": "b"}]


def test_insert_sets_last_insert_id(sqlite_connection):
    assert sqlite_connection.execute("INSERT INTO item (label) VALUES (?)", ["x"]) == []
    assert sqlite_connection.last_insert_id() == 1
    sqlite_connection.execute("INSERT INTO item (label) VALUES (?)", ["y"])
    assert sqlite_connection.last_insert_id() == 2


def test_affected_rows(sqlite_connection):
    for label in ("a", "b", "c"):
        sqlite_connection.execute("INSERT INTO item (label) VALUES (?)", (label,))
    sqlite_connection.execute("UPDATE item SET label = ? WHERE id > ?", ("z", 1))
    assert sqlite_connection.affected_rows() == 2
    sqlite_connection.execute("DELETE FROM item WHERE id = ?", (99,))
    assert sqlite_connection.affected_rows() == 0


def test_autocommit_makes_writes_visible_to_other_connections(tmp_path):
    url = f"sqlite:///{tmp_path / 'shared.sqlite3'}"
    writer = connect(url)
    writer.execute("CREATE TABLE item (id INTEGER PRIMARY KEY, label TEXT)")
    writer.execute("INSERT INTO item (label) VALUES (?)", ("a",))
    reader = connect(url)
    assert reader.execute("SELECT COUNT(*) AS n FROM item") == [{"n": 1}]
    writer.close()
    reader.close()


def test_without_autocommit_writes_wait_for_commit(tmp_path):
    url = f"sqlite:///{tmp_path / 'manual.sqlite3'}"
    writer = connect(url, autocommit=False)
    writer.execute("CREATE TABLE item (id INTEGER PRIMARY KEY, label TEXT)")
    writer.commit()
    writer.execute("INSERT INTO item (label) VALUES (?)", ("a",))
    reader = connect(url)
    assert reader.execute("SELECT COUNT(*) AS n FROM item") == [{"n": 0}]
    writer.commit()
    assert reader.execute("SELECT COUNT(*) AS n FROM item") == [{"n": 1}]
    writer.close()
    reader.close()


def test_statements_are_logged(sqlite_connection, caplog):
    with caplog.at_level("DEBUG", logger="datamapper.connection"):
        sqlite_connection.execute("SELECT label FROM item WHERE id = ?", (3,))
    assert "SELECT label FROM item WHERE id = ? (3,)" in caplog.text
