"""Protocol state machine tests against a scripted fake engine handle."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest

from pool_lite.adapters.protocol import StatementRef, SyncEngineHandle
from pool_lite.core.connection import Connection
from pool_lite.core.enums import Command, ConnectionStatus, TransactionStatus
from pool_lite.core.exceptions import (
    BusyConnectionError,
    EngineError,
    TransactionStateError,
)
from pool_lite.core.query import Query


class FakeHandle:
    """Engine handle yielding scripted rows and recording calls."""

    def __init__(self, rows: list[tuple[Any, ...]] | None = None, fail_bind: bool = False) -> None:
        self.rows = rows or []
        self.fail_bind = fail_bind
        self.calls: list[str] = []
        self.live: set[StatementRef] = set()
        self.is_open = True
        self.in_transaction = False
        self._next = 0
        self._cursor: dict[StatementRef, int] = {}

    def close(self) -> None:
        self.calls.append("close")
        self.live.clear()
        self.is_open = False

    def execute(self, sql: str) -> None:
        self.calls.append(f"execute:{sql}")

    def prepare(self, sql: str) -> StatementRef:
        self._next += 1
        ref = StatementRef(handle_id=0, index=self._next)
        self.live.add(ref)
        self.calls.append("prepare")
        if sql.startswith("BEGIN"):
            self.in_transaction = True
        elif sql in ("COMMIT", "ROLLBACK"):
            self.in_transaction = False
        return ref

    def bind(self, ref: StatementRef, params: Any) -> None:
        self.calls.append(f"bind:{params!r}")
        if self.fail_bind:
            raise EngineError("constraint failed")
        self._cursor[ref] = 0

    def step(self, ref: StatementRef, chunk_size: int) -> list[Sequence[Any]]:
        self.calls.append(f"step:{chunk_size}")
        start = self._cursor[ref]
        chunk = self.rows[start : start + chunk_size]
        self._cursor[ref] = start + len(chunk)
        return chunk

    def owns(self, ref: StatementRef) -> bool:
        return ref.handle_id == 0

    def parameter_count(self, ref: StatementRef) -> int:
        return 0

    def column_names(self, ref: StatementRef) -> list[str] | None:
        return ["id", "name"]

    def changes(self, ref: StatementRef) -> int:
        return 7

    def finalize(self, ref: StatementRef) -> None:
        self.calls.append("finalize")
        self.live.discard(ref)


def _rows(count: int) -> list[tuple[int, str]]:
    return [(i, f"User-{i}") for i in range(1, count + 1)]


class TestFakeHandle:
    def test_implements_sync_protocol(self) -> None:
        assert isinstance(FakeHandle(), SyncEngineHandle)


class TestBusyIdle:
    def test_checkout_without_engine(self) -> None:
        conn = Connection(handle=None, path=":memory:")

        assert conn.checkout().status is ConnectionStatus.BUSY

    def test_double_checkout_without_engine(self) -> None:
        conn = Connection(handle=None, path=":memory:")
        conn.checkout()

        with pytest.raises(BusyConnectionError):
            conn.checkout()
        assert conn.status is ConnectionStatus.BUSY

    def test_checkin_when_idle_is_noop(self) -> None:
        conn = Connection(handle=None, path=":memory:")

        assert conn.checkin().status is ConnectionStatus.IDLE


class TestRowMaterialization:
    @pytest.mark.parametrize("chunk_size", [1, 3, 50, 1000])
    def test_chunking_keeps_order(self, chunk_size: int) -> None:
        handle = FakeHandle(rows=_rows(125))
        conn = Connection(handle=handle, path=":memory:", chunk_size=chunk_size)

        _, result = conn.execute(Query("select * from users"))

        assert result.rows == [[i, f"User-{i}"] for i in range(1, 126)]
        assert f"step:{chunk_size}" in handle.calls

    def test_rows_are_lists(self) -> None:
        conn = Connection(handle=FakeHandle(rows=[(1, "Jim")]), path=":memory:")

        _, result = conn.execute(Query("select * from users"))

        assert result.rows == [[1, "Jim"]]
        assert isinstance(result.rows[0], list)

    def test_update_hint_drains_and_reports_changes(self) -> None:
        handle = FakeHandle(rows=_rows(2))
        conn = Connection(handle=handle, path=":memory:")

        _, result = conn.execute(Query("update users set name = 'x'", command=Command.UPDATE))

        assert result.rows is None
        assert result.num_rows == 7
        assert handle.calls.count("step:50") == 2


class TestStatementLifecycle:
    def test_direct_execute_finalizes(self) -> None:
        handle = FakeHandle(rows=_rows(3))
        conn = Connection(handle=handle, path=":memory:")

        conn.execute(Query("select * from users"), [1])

        assert handle.calls[0] == "prepare"
        assert handle.calls[1] == "bind:(1,)"
        assert handle.calls[-1] == "finalize"
        assert handle.live == set()

    def test_direct_execute_finalizes_on_error(self) -> None:
        handle = FakeHandle(fail_bind=True)
        conn = Connection(handle=handle, path=":memory:")

        with pytest.raises(EngineError) as exc_info:
            conn.execute(Query("insert into users values (1)"))

        assert exc_info.value.connection is conn
        assert handle.calls[-1] == "finalize"
        assert handle.live == set()

    def test_prepared_execute_keeps_ref(self) -> None:
        handle = FakeHandle(rows=_rows(1))
        conn = Connection(handle=handle, path=":memory:")
        query = conn.prepare(Query("select * from users"))

        conn.execute(query)
        conn.execute(query)

        assert "finalize" not in handle.calls
        assert handle.live == {query.ref}

        conn.close(query)
        assert handle.live == set()

    def test_disconnect_closes_handle(self) -> None:
        handle = FakeHandle()
        conn = Connection(handle=handle, path=":memory:")

        conn.disconnect()

        assert handle.calls == ["close"]
        assert conn.handle is None


class TestTransactions:
    def test_begin_commit(self) -> None:
        handle = FakeHandle()
        conn = Connection(handle=handle, path=":memory:")

        result = conn.begin()
        assert result.command is Command.BEGIN
        assert result.rows is None
        assert conn.transaction_status is TransactionStatus.TRANSACTION

        conn.commit()
        assert conn.transaction_status is TransactionStatus.IDLE

    def test_commit_without_transaction(self) -> None:
        conn = Connection(handle=FakeHandle(), path=":memory:")

        with pytest.raises(TransactionStateError, match="in state 'idle'"):
            conn.commit()

    def test_nested_begin(self) -> None:
        conn = Connection(handle=FakeHandle(), path=":memory:")
        conn.begin()

        with pytest.raises(TransactionStateError):
            conn.begin()
