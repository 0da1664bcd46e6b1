"""
Tests for the TimescaleDB writer.
"""

import asyncio

import psycopg2
import psycopg2.errors
import psycopg2.extras
import pytest

from ohmgraphite.const import DB_CONNECT_TIMEOUT
from ohmgraphite.writers.timescale import TimescaleWriter, snapshot_rows

from conftest import two_sensor_snapshot


class FakeCursor:
    def __init__(self, conn: "FakeConnection"):
        self.conn = conn

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql: str) -> None:
        if self.conn.fail_setup:
            raise psycopg2.errors.UndefinedFunction("function create_hypertable does not exist")
        self.conn.statements.append(" ".join(sql.split()))


class FakeConnection:
    def __init__(self):
        self.closed = 0
        self.fail_setup = False
        self.commits = 0
        self.statements: list[str] = []

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def close(self) -> None:
        self.closed = 1


@pytest.fixture
def fake_db(monkeypatch: pytest.MonkeyPatch):
    state = {"connections": [], "options": [], "inserts": [], "fail_next_insert": False, "fail_setup": False}

    def connect(dsn: str, **options) -> FakeConnection:
        conn = FakeConnection()
        conn.fail_setup = state["fail_setup"]
        state["connections"].append((dsn, conn))
        state["options"].append(options)
        return conn

    def execute_values(cur, sql, rows):
        if state["fail_next_insert"]:
            state["fail_next_insert"] = False
            raise psycopg2.OperationalError("server closed the connection")
        state["inserts"].append(rows)

    monkeypatch.setattr(psycopg2, "connect", connect)
    monkeypatch.setattr(psycopg2.extras, "execute_values", execute_values)
    return state


def test_snapshot_rows() -> None:
    snapshot = two_sensor_snapshot()

    rows = snapshot_rows(snapshot, "box1")

    assert rows[0] == (
        snapshot.timestamp,
        "box1",
        "Intel Core i7",
        "cpu",
        "/cpu/0/temperature/0",
        "CPU Package",
        "temperature",
        0,
        55.5,
    )
    assert rows[1][6] == "fan"


def test_setup_table_once_per_connection(fake_db) -> None:
    writer = TimescaleWriter("host=db", setup_table=True, hostname="box1")

    async def scenario():
        await writer.write(two_sensor_snapshot())
        await writer.write(two_sensor_snapshot())
        await writer.close()

    asyncio.run(scenario())

    assert len(fake_db["connections"]) == 1
    dsn, conn = fake_db["connections"][0]
    assert dsn == "host=db"
    assert conn.statements[0].startswith("CREATE TABLE IF NOT EXISTS ohm_stats")
    assert "create_hypertable" in conn.statements[1]
    assert len(fake_db["inserts"]) == 2
    assert conn.closed


def test_skip_setup_table(fake_db) -> None:
    writer = TimescaleWriter("host=db", setup_table=False, hostname="box1")

    asyncio.run(writer.write(two_sensor_snapshot()))

    _dsn, conn = fake_db["connections"][0]
    assert conn.statements == []


def test_reconnects_after_failure(fake_db) -> None:
    writer = TimescaleWriter("host=db", setup_table=False, hostname="box1")
    fake_db["fail_next_insert"] = True

    async def scenario():
        with pytest.raises(psycopg2.OperationalError):
            await writer.write(two_sensor_snapshot())
        await writer.write(two_sensor_snapshot())

    asyncio.run(scenario())

    assert len(fake_db["connections"]) == 2
    assert fake_db["connections"][0][1].closed
    assert len(fake_db["inserts"]) == 1


def test_default_connect_timeout(fake_db) -> None:
    writer = TimescaleWriter("host=db dbname=ohm", setup_table=False, hostname="box1")

    asyncio.run(writer.write(two_sensor_snapshot()))

    assert fake_db["options"] == [{"connect_timeout": DB_CONNECT_TIMEOUT}]


def test_connection_string_timeout_wins(fake_db) -> None:
    writer = TimescaleWriter("postgresql://db/ohm?connect_timeout=3", setup_table=False, hostname="box1")

    asyncio.run(writer.write(two_sensor_snapshot()))

    assert fake_db["options"] == [{}]
    assert fake_db["connections"][0][0] == "postgresql://db/ohm?connect_timeout=3"


def test_failed_setup_closes_connection(fake_db) -> None:
    writer = TimescaleWriter("host=db", setup_table=True, hostname="box1")
    fake_db["fail_setup"] = True

    with pytest.raises(psycopg2.errors.UndefinedFunction):
        asyncio.run(writer.write(two_sensor_snapshot()))

    _dsn, conn = fake_db["connections"][0]
    assert conn.closed
    assert writer._conn is None
    assert fake_db["inserts"] == []
