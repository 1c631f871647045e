"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from pool_lite.adapters.sqlite import SqliteHandle
from pool_lite.core.config import ConnectionConfig
from pool_lite.core.connection import Connection

USERS_TABLE = "create table users (id integer primary key, name text)"


@pytest.fixture
def memory_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(database=":memory:")


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """Path of a database file that does not exist yet."""
    return str(tmp_path / "test.db")


@pytest.fixture
def seed_db(db_path: str):
    """Helper to run raw statements against the database file before connecting.

    Usage:
        seed_db(USERS_TABLE, "insert into users (id, name) values (1, 'Jim')")
    """

    def _seed(*statements: str) -> str:
        handle = SqliteHandle.open(db_path)
        try:
            for sql in statements:
                handle.execute(sql)
        finally:
            handle.close()
        return db_path

    return _seed


@pytest.fixture
def users_db(seed_db) -> str:
    """Database file with four users."""
    return seed_db(
        USERS_TABLE,
        "insert into users (id, name) values (1, 'Jim')",
        "insert into users (id, name) values (2, 'Bob')",
        "insert into users (id, name) values (3, 'Dave')",
        "insert into users (id, name) values (4, 'Steve')",
    )


@pytest.fixture
def memory_conn() -> Iterator[Connection]:
    """Connected in-memory Connection, disconnected after the test."""
    conn = Connection.connect(database=":memory:")
    yield conn
    conn.disconnect()
