"""Engine handle protocols.

Every engine binding MUST implement these protocols. The connection state
machine only talks to the engine through them, so a handle can be swapped
for a fake in tests.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

Params = Mapping[str, Any] | Sequence[Any]


@dataclass(frozen=True)
class StatementRef:
    """Opaque token for a prepared statement.

    Only meaningful to the handle whose ``handle_id`` it carries.
    """

    handle_id: int
    index: int


@runtime_checkable
class SyncEngineHandle(Protocol):
    """Synchronous embedded engine handle protocol."""

    @property
    def is_open(self) -> bool:
        """True until ``close`` is called."""
        ...

    @property
    def in_transaction(self) -> bool:
        """True while the engine has an open transaction."""
        ...

    def close(self) -> None:
        """Finalize outstanding statements and release the handle."""
        ...

    def execute(self, sql: str) -> None:
        """Run a single statement with no parameters, discarding rows."""
        ...

    def prepare(self, sql: str) -> StatementRef:
        """Compile *sql* without executing it."""
        ...

    def bind(self, ref: StatementRef, params: Params) -> None:
        """Bind *params* and run the statement, ready for stepping."""
        ...

    def step(self, ref: StatementRef, chunk_size: int) -> list[Sequence[Any]]:
        """Return up to *chunk_size* rows; an empty list once exhausted."""
        ...

    def owns(self, ref: StatementRef) -> bool:
        """True if *ref* was prepared by this handle."""
        ...

    def parameter_count(self, ref: StatementRef) -> int:
        """Number of placeholders the prepared statement expects."""
        ...

    def column_names(self, ref: StatementRef) -> list[str] | None:
        """Ordered column names, or None when there is no result set."""
        ...

    def changes(self, ref: StatementRef) -> int:
        """Rows changed by the last run of the statement."""
        ...

    def finalize(self, ref: StatementRef) -> None:
        """Release the statement. Unknown or released refs are a no-op."""
        ...


@runtime_checkable
class AsyncEngineHandle(Protocol):
    """Asynchronous embedded engine handle protocol."""

    @property
    def is_open(self) -> bool:
        """True until ``close`` is called."""
        ...

    @property
    def in_transaction(self) -> bool:
        """True while the engine has an open transaction."""
        ...

    async def close(self) -> None:
        """Finalize outstanding statements and release the handle."""
        ...

    async def execute(self, sql: str) -> None:
        """Run a single statement with no parameters, discarding rows."""
        ...

    async def prepare(self, sql: str) -> StatementRef:
        """Compile *sql* without executing it."""
        ...

    async def bind(self, ref: StatementRef, params: Params) -> None:
        """Bind *params* and run the statement, ready for stepping."""
        ...

    async def step(self, ref: StatementRef, chunk_size: int) -> list[Sequence[Any]]:
        """Return up to *chunk_size* rows; an empty list once exhausted."""
        ...

    def owns(self, ref: StatementRef) -> bool:
        """True if *ref* was prepared by this handle."""
        ...

    def parameter_count(self, ref: StatementRef) -> int:
        """Number of placeholders the prepared statement expects."""
        ...

    def column_names(self, ref: StatementRef) -> list[str] | None:
        """Ordered column names, or None when there is no result set."""
        ...

    def changes(self, ref: StatementRef) -> int:
        """Rows changed by the last run of the statement."""
        ...

    async def finalize(self, ref: StatementRef) -> None:
        """Release the statement. Unknown or released refs are a no-op."""
        ...
