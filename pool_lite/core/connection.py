"""Connection state machine.

Connection and AsyncConnection implement the lifecycle a pool manager
drives against one embedded engine handle:

    connect -> checkout -> prepare/execute -> close -> checkin -> disconnect

Recoverable failures raise EngineError with the connection attached as
``connection``; failures that leave the connection unusable raise a
DisconnectError so the pool manager drops it instead of retrying.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import asynccontextmanager, contextmanager
from typing import Any, TypeVar

from pool_lite.adapters.protocol import AsyncEngineHandle, SyncEngineHandle
from pool_lite.adapters.sqlite import NOT_CONNECTED_MESSAGE, AsyncSqliteHandle, SqliteHandle
from pool_lite.core.config import ConnectionConfig, resolve_config
from pool_lite.core.enums import Command, ConnectionStatus, TransactionMode, TransactionStatus
from pool_lite.core.exceptions import (
    BusyConnectionError,
    DisconnectError,
    EngineError,
    TransactionStateError,
)
from pool_lite.core.params import coerce_params
from pool_lite.core.query import Query
from pool_lite.core.result import Result, normalize_result

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = ConnectionConfig.model_fields["chunk_size"].default

_C = TypeVar("_C", bound="_ConnectionState")


class _ConnectionState:
    """State shared by the sync and async connections."""

    def __init__(
        self,
        handle: Any = None,
        path: str | None = None,
        status: ConnectionStatus = ConnectionStatus.IDLE,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.handle = handle
        self.path = path
        self.status = status
        self.chunk_size = chunk_size

    def __repr__(self) -> str:
        return f"<{type(self).__name__} path={self.path!r} status={self.status.value}>"

    @property
    def connected(self) -> bool:
        return self.handle is not None and self.handle.is_open

    @property
    def transaction_status(self) -> TransactionStatus:
        if self.handle is not None and self.handle.in_transaction:
            return TransactionStatus.TRANSACTION
        return TransactionStatus.IDLE

    def checkout(self: _C) -> _C:
        """Claim the connection for one caller.

        Raises:
            BusyConnectionError: if the connection is already checked out.
        """
        if self.status is ConnectionStatus.BUSY:
            raise BusyConnectionError(self)
        self.status = ConnectionStatus.BUSY
        return self

    def checkin(self: _C) -> _C:
        """Return the connection to the idle state."""
        self.status = ConnectionStatus.IDLE
        return self

    def ping(self: _C) -> _C:
        """Liveness probe. Returns the connection unchanged."""
        if not self.connected:
            raise DisconnectError(NOT_CONNECTED_MESSAGE, self)
        return self

    def _require_handle(self) -> Any:
        if not self.connected:
            raise DisconnectError(NOT_CONNECTED_MESSAGE, self)
        return self.handle

    @contextmanager
    def _owned_errors(self) -> Iterator[None]:
        """Attach this connection to engine and disconnect errors."""
        try:
            yield
        except (EngineError, DisconnectError) as e:
            if e.connection is None:
                e.connection = self
            raise

    def _check_can_begin(self) -> None:
        if self.transaction_status is TransactionStatus.TRANSACTION:
            raise TransactionStateError("transaction", "begin")

    def _check_in_transaction(self, action: str) -> None:
        if self.transaction_status is TransactionStatus.IDLE:
            raise TransactionStateError("idle", action)


class Connection(_ConnectionState):
    """Synchronous connection owning one SQLite engine handle."""

    handle: SyncEngineHandle | None

    @classmethod
    def connect(
        cls,
        config: ConnectionConfig | Mapping[str, Any] | None = None,
        **options: Any,
    ) -> Connection:
        """Open the configured database and return an idle connection.

        Args:
            config: ConnectionConfig, or a mapping of connect options
            **options: connect options, overriding *config*

        Raises:
            ConfigurationError: if no database was given
            EngineError: if the engine cannot open the database
        """
        resolved = resolve_config(config, **options)
        handle = SqliteHandle.open(resolved.database)
        logger.debug("connected to %s", resolved.database)
        return cls(handle=handle, path=resolved.database, chunk_size=resolved.chunk_size)

    def disconnect(self) -> None:
        """Release the engine handle. Safe on closed or never-opened state."""
        if self.handle is not None:
            self.handle.close()
            logger.debug("disconnected from %s", self.path)
        self.handle = None

    def execute(
        self,
        query: Query,
        params: Any = None,
        *,
        timeout: float | None = None,
    ) -> tuple[Query, Result]:
        """Run *query* and return it with its Result.

        An unprepared query is prepared for this call only and finalized
        before returning, so the returned query's ``ref`` stays None.
        *timeout* is advisory for the pool manager; a running statement is
        never interrupted.
        """
        handle = self._require_handle()
        bound = coerce_params(params)
        with self._owned_errors():
            if query.ref is not None:
                return query, self._run(handle, query, bound)
            ref = handle.prepare(query.statement)
            try:
                return query, self._run(handle, query.with_ref(ref), bound)
            finally:
                handle.finalize(ref)

    def prepare(self, query: Query) -> Query:
        """Compile *query* and return a copy carrying its statement ref."""
        handle = self._require_handle()
        if query.ref is not None and handle.owns(query.ref):
            self.close(query)
        # a ref from a dropped connection is simply replaced
        with self._owned_errors():
            ref = handle.prepare(query.statement)
        return query.with_ref(ref)

    def close(self, query: Query) -> None:
        """Release *query*'s prepared statement, if it has one."""
        if query.ref is None or self.handle is None:
            return None
        with self._owned_errors():
            self.handle.finalize(query.ref)
        return None

    def begin(self, mode: TransactionMode = TransactionMode.DEFERRED) -> Result:
        self._check_can_begin()
        _, result = self.execute(Query(f"BEGIN {mode.value}", command=Command.BEGIN))
        return result

    def commit(self) -> Result:
        self._check_in_transaction("commit")
        _, result = self.execute(Query("COMMIT", command=Command.COMMIT))
        return result

    def rollback(self) -> Result:
        self._check_in_transaction("rollback")
        _, result = self.execute(Query("ROLLBACK", command=Command.ROLLBACK))
        return result

    @contextmanager
    def transaction(self, mode: TransactionMode = TransactionMode.DEFERRED) -> Iterator[Connection]:
        """Commit on success, roll back on exception."""
        self.begin(mode)
        try:
            yield self
        except BaseException:
            if self.transaction_status is TransactionStatus.TRANSACTION:
                self.rollback()
            raise
        if self.transaction_status is TransactionStatus.TRANSACTION:
            self.commit()

    def _run(self, handle: SyncEngineHandle, query: Query, params: Any) -> Result:
        ref = query.ref
        handle.bind(ref, params)
        columns = handle.column_names(ref)

        rows: list[list[Any]] = []
        while True:
            chunk = handle.step(ref, self.chunk_size)
            if not chunk:
                break
            rows.extend(list(row) for row in chunk)

        return normalize_result(query.kind, columns, rows, handle.changes(ref))


class AsyncConnection(_ConnectionState):
    """Asynchronous connection owning one aiosqlite engine handle."""

    handle: AsyncEngineHandle | None

    @classmethod
    async def connect(
        cls,
        config: ConnectionConfig | Mapping[str, Any] | None = None,
        **options: Any,
    ) -> AsyncConnection:
        """Open the configured database and return an idle connection."""
        resolved = resolve_config(config, **options)
        handle = await AsyncSqliteHandle.open(resolved.database)
        logger.debug("connected to %s", resolved.database)
        return cls(handle=handle, path=resolved.database, chunk_size=resolved.chunk_size)

    async def disconnect(self) -> None:
        """Release the engine handle. Safe on closed or never-opened state."""
        if self.handle is not None:
            await self.handle.close()
            logger.debug("disconnected from %s", self.path)
        self.handle = None

    async def execute(
        self,
        query: Query,
        params: Any = None,
        *,
        timeout: float | None = None,
    ) -> tuple[Query, Result]:
        """Run *query* and return it with its Result."""
        handle = self._require_handle()
        bound = coerce_params(params)
        with self._owned_errors():
            if query.ref is not None:
                return query, await self._run(handle, query, bound)
            ref = await handle.prepare(query.statement)
            try:
                return query, await self._run(handle, query.with_ref(ref), bound)
            finally:
                await handle.finalize(ref)

    async def prepare(self, query: Query) -> Query:
        """Compile *query* and return a copy carrying its statement ref."""
        handle = self._require_handle()
        if query.ref is not None and handle.owns(query.ref):
            await self.close(query)
        # a ref from a dropped connection is simply replaced
        with self._owned_errors():
            ref = await handle.prepare(query.statement)
        return query.with_ref(ref)

    async def close(self, query: Query) -> None:
        """Release *query*'s prepared statement, if it has one."""
        if query.ref is None or self.handle is None:
            return None
        with self._owned_errors():
            await self.handle.finalize(query.ref)
        return None

    async def begin(self, mode: TransactionMode = TransactionMode.DEFERRED) -> Result:
        self._check_can_begin()
        _, result = await self.execute(Query(f"BEGIN {mode.value}", command=Command.BEGIN))
        return result

    async def commit(self) -> Result:
        self._check_in_transaction("commit")
        _, result = await self.execute(Query("COMMIT", command=Command.COMMIT))
        return result

    async def rollback(self) -> Result:
        self._check_in_transaction("rollback")
        _, result = await self.execute(Query("ROLLBACK", command=Command.ROLLBACK))
        return result

    @asynccontextmanager
    async def transaction(
        self, mode: TransactionMode = TransactionMode.DEFERRED
    ) -> AsyncIterator[AsyncConnection]:
        """Commit on success, roll back on exception."""
        await self.begin(mode)
        try:
            yield self
        except BaseException:
            if self.transaction_status is TransactionStatus.TRANSACTION:
                await self.rollback()
            raise
        if self.transaction_status is TransactionStatus.TRANSACTION:
            await self.commit()

    async def _run(self, handle: AsyncEngineHandle, query: Query, params: Any) -> Result:
        ref = query.ref
        await handle.bind(ref, params)
        columns = handle.column_names(ref)

        rows: list[list[Any]] = []
        while True:
            chunk = await handle.step(ref, self.chunk_size)
            if not chunk:
                break
            rows.extend(list(row) for row in chunk)

        return normalize_result(query.kind, columns, rows, handle.changes(ref))
