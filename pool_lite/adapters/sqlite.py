"""SQLite engine handles - sync (sqlite3 stdlib) and async (aiosqlite).

SQLite's Python bindings have no public prepare/finalize API, so a
statement is compiled by preparing ``EXPLAIN <sql>``: the engine parses and
resolves the statement (missing tables, syntax errors) without running it.
The compiled SQL is then executed on a dedicated cursor at bind time.
"""

from __future__ import annotations

import itertools
import logging
import re
import sqlite3
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import aiosqlite

from pool_lite.adapters.protocol import Params, StatementRef
from pool_lite.core.exceptions import (
    DisconnectError,
    EngineError,
    PoolLiteError,
    StatementError,
)

logger = logging.getLogger(__name__)

NOT_CONNECTED_MESSAGE = "Database is not connected"

# "Incorrect number of bindings supplied. The current statement uses 2, and there are 0 supplied."
_BINDINGS_PATTERN = re.compile(r"statement uses (\d+), and there are \d+ supplied")

_handle_ids = itertools.count(1)


def translate_error(exc: sqlite3.Error | OverflowError) -> PoolLiteError:
    """Map a sqlite3 exception onto the PoolLite hierarchy, message preserved.

    OverflowError is what sqlite3 raises for integers outside 64 bits.
    """
    message = str(exc)
    if isinstance(exc, sqlite3.ProgrammingError) and "closed database" in message:
        return DisconnectError(message)
    return EngineError(message, code=getattr(exc, "sqlite_errorname", None))


def _explain_sql(sql: str) -> str:
    if sql.lstrip()[:7].upper() == "EXPLAIN":
        return sql
    return f"EXPLAIN {sql}"


def _placeholder_count(exc: sqlite3.ProgrammingError) -> int | None:
    match = _BINDINGS_PATTERN.search(str(exc))
    return int(match.group(1)) if match else None


def _check_arity(statement: _Statement, params: Params) -> None:
    if isinstance(params, Mapping) or len(params) == statement.param_count:
        return
    raise EngineError(
        "Incorrect number of bindings supplied. "
        f"The current statement uses {statement.param_count}, "
        f"and there are {len(params)} supplied."
    )


@dataclass
class _Statement:
    sql: str
    param_count: int = 0
    cursor: Any = None


class _StatementTable:
    """Prepared statements owned by one handle, keyed by StatementRef."""

    def __init__(self) -> None:
        self.handle_id = next(_handle_ids)
        self._indexes = itertools.count(1)
        self._statements: dict[StatementRef, _Statement] = {}

    def __len__(self) -> int:
        return len(self._statements)

    def add(self, statement: _Statement) -> StatementRef:
        ref = StatementRef(self.handle_id, next(self._indexes))
        self._statements[ref] = statement
        return ref

    def get(self, ref: StatementRef) -> _Statement:
        self._check_owner(ref)
        statement = self._statements.get(ref)
        if statement is None:
            raise StatementError("Prepared statement has been released")
        return statement

    def owns(self, ref: StatementRef) -> bool:
        return isinstance(ref, StatementRef) and ref.handle_id == self.handle_id

    def pop(self, ref: StatementRef) -> _Statement | None:
        self._check_owner(ref)
        return self._statements.pop(ref, None)

    def drain(self) -> list[_Statement]:
        statements = list(self._statements.values())
        self._statements.clear()
        return statements

    def _check_owner(self, ref: StatementRef) -> None:
        if not self.owns(ref):
            raise StatementError("Prepared statement belongs to another connection")


class SqliteHandle:
    """Synchronous SQLite engine handle using stdlib sqlite3."""

    def __init__(self, connection: sqlite3.Connection, path: str) -> None:
        self._conn: sqlite3.Connection | None = connection
        self.path = path
        self._statements = _StatementTable()

    @classmethod
    def open(cls, path: str) -> SqliteHandle:
        """Open a database file, or an in-memory database for ``":memory:"``."""
        try:
            # autocommit: transactions are only ever opened explicitly
            connection = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
        except sqlite3.Error as e:
            raise translate_error(e) from e
        logger.debug("opened sqlite handle for %s", path)
        return cls(connection, path)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None and self._conn.in_transaction

    @property
    def statement_count(self) -> int:
        return len(self._statements)

    def owns(self, ref: StatementRef) -> bool:
        return self._statements.owns(ref)

    def parameter_count(self, ref: StatementRef) -> int:
        return self._statements.get(ref).param_count

    def close(self) -> None:
        if self._conn is None:
            return
        for statement in self._statements.drain():
            if statement.cursor is not None:
                statement.cursor.close()
        self._conn.close()
        self._conn = None
        logger.debug("closed sqlite handle for %s", self.path)

    def execute(self, sql: str) -> None:
        conn = self._require_open()
        try:
            conn.execute(sql).close()
        except sqlite3.Error as e:
            raise translate_error(e) from e

    def prepare(self, sql: str) -> StatementRef:
        conn = self._require_open()
        cursor = conn.cursor()
        try:
            cursor.execute(_explain_sql(sql))
            placeholders = 0
        except sqlite3.ProgrammingError as e:
            # Binding is checked after the statement compiled successfully
            count = _placeholder_count(e)
            if count is None:
                raise translate_error(e) from e
            placeholders = count
        except sqlite3.Error as e:
            raise translate_error(e) from e
        finally:
            cursor.close()
        ref = self._statements.add(_Statement(sql=sql, param_count=placeholders))
        logger.debug("prepared statement %s with %d placeholders", ref.index, placeholders)
        return ref

    def bind(self, ref: StatementRef, params: Params) -> None:
        conn = self._require_open()
        statement = self._statements.get(ref)
        _check_arity(statement, params)
        if statement.cursor is not None:
            statement.cursor.close()
            statement.cursor = None
        cursor = conn.cursor()
        try:
            cursor.execute(statement.sql, params)
        except (sqlite3.Error, OverflowError) as e:
            cursor.close()
            raise translate_error(e) from e
        statement.cursor = cursor

    def step(self, ref: StatementRef, chunk_size: int) -> list[Sequence[Any]]:
        self._require_open()
        cursor = self._bound_cursor(ref)
        try:
            return cursor.fetchmany(chunk_size)
        except sqlite3.Error as e:
            raise translate_error(e) from e

    def column_names(self, ref: StatementRef) -> list[str] | None:
        cursor = self._bound_cursor(ref)
        if cursor.description is None:
            return None
        return [desc[0] for desc in cursor.description]

    def changes(self, ref: StatementRef) -> int:
        return max(self._bound_cursor(ref).rowcount, 0)

    def finalize(self, ref: StatementRef) -> None:
        statement = self._statements.pop(ref)
        if statement is None:
            return
        if statement.cursor is not None:
            statement.cursor.close()
        logger.debug("finalized statement %s", ref.index)

    def _bound_cursor(self, ref: StatementRef) -> sqlite3.Cursor:
        statement = self._statements.get(ref)
        if statement.cursor is None:
            raise StatementError("Prepared statement has not been executed")
        return statement.cursor

    def _require_open(self) -> sqlite3.Connection:
        if self._conn is None:
            raise DisconnectError(NOT_CONNECTED_MESSAGE)
        return self._conn


class AsyncSqliteHandle:
    """Asynchronous SQLite engine handle using aiosqlite."""

    def __init__(self, connection: aiosqlite.Connection, path: str) -> None:
        self._conn: aiosqlite.Connection | None = connection
        self.path = path
        self._statements = _StatementTable()

    @classmethod
    async def open(cls, path: str) -> AsyncSqliteHandle:
        """Open a database file, or an in-memory database for ``":memory:"``."""
        try:
            connection = await aiosqlite.connect(path, isolation_level=None)
        except sqlite3.Error as e:
            raise translate_error(e) from e
        logger.debug("opened aiosqlite handle for %s", path)
        return cls(connection, path)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None and self._conn.in_transaction

    @property
    def statement_count(self) -> int:
        return len(self._statements)

    def owns(self, ref: StatementRef) -> bool:
        return self._statements.owns(ref)

    def parameter_count(self, ref: StatementRef) -> int:
        return self._statements.get(ref).param_count

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            for statement in self._statements.drain():
                if statement.cursor is not None:
                    await statement.cursor.close()
        finally:
            await conn.close()
        logger.debug("closed aiosqlite handle for %s", self.path)

    async def execute(self, sql: str) -> None:
        conn = self._require_open()
        try:
            cursor = await conn.execute(sql)
            await cursor.close()
        except sqlite3.Error as e:
            raise translate_error(e) from e

    async def prepare(self, sql: str) -> StatementRef:
        conn = self._require_open()
        cursor = await conn.cursor()
        try:
            await cursor.execute(_explain_sql(sql))
            placeholders = 0
        except sqlite3.ProgrammingError as e:
            # Binding is checked after the statement compiled successfully
            count = _placeholder_count(e)
            if count is None:
                raise translate_error(e) from e
            placeholders = count
        except sqlite3.Error as e:
            raise translate_error(e) from e
        finally:
            await cursor.close()
        ref = self._statements.add(_Statement(sql=sql, param_count=placeholders))
        logger.debug("prepared statement %s with %d placeholders", ref.index, placeholders)
        return ref

    async def bind(self, ref: StatementRef, params: Params) -> None:
        conn = self._require_open()
        statement = self._statements.get(ref)
        _check_arity(statement, params)
        if statement.cursor is not None:
            await statement.cursor.close()
            statement.cursor = None
        cursor = await conn.cursor()
        try:
            await cursor.execute(statement.sql, params)
        except (sqlite3.Error, OverflowError) as e:
            await cursor.close()
            raise translate_error(e) from e
        statement.cursor = cursor

    async def step(self, ref: StatementRef, chunk_size: int) -> list[Sequence[Any]]:
        self._require_open()
        cursor = self._bound_cursor(ref)
        try:
            return list(await cursor.fetchmany(chunk_size))
        except sqlite3.Error as e:
            raise translate_error(e) from e

    def column_names(self, ref: StatementRef) -> list[str] | None:
        cursor = self._bound_cursor(ref)
        if cursor.description is None:
            return None
        return [desc[0] for desc in cursor.description]

    def changes(self, ref: StatementRef) -> int:
        return max(self._bound_cursor(ref).rowcount, 0)

    async def finalize(self, ref: StatementRef) -> None:
        statement = self._statements.pop(ref)
        if statement is None:
            return
        if statement.cursor is not None:
            await statement.cursor.close()
        logger.debug("finalized statement %s", ref.index)

    def _bound_cursor(self, ref: StatementRef) -> aiosqlite.Cursor:
        statement = self._statements.get(ref)
        if statement.cursor is None:
            raise StatementError("Prepared statement has not been executed")
        return statement.cursor

    def _require_open(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise DisconnectError(NOT_CONNECTED_MESSAGE)
        return self._conn
