import pytest

from datamapper import Mapper, connect
from tests.helpers import SCHEMA, SEED, RecordingConnection, SpyResultCache


@pytest.fixture
def connection(tmp_path):
    """Connection to a fresh SQLite file holding the test schema."""
    conn = connect(f"sqlite:///{tmp_path / 'test.sqlite3'}")
    for statement in SCHEMA:
        conn.execute(statement)
    yield conn
    conn.close()


@pytest.fixture
def recorder(connection):
    return RecordingConnection(connection)


@pytest.fixture
def result_cache():
    return SpyResultCache()


@pytest.fixture
def mapper(recorder, result_cache):
    return Mapper(recorder, result_cache=result_cache)


@pytest.fixture
def seeded(connection, recorder):
    """Two customers, four orders and three order lines; statements run so far are forgotten."""
    for sql, parameters in SEED:
        connection.execute(sql, parameters)
    recorder.reset()
