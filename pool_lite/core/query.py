"""Query descriptor value object."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pool_lite.core.enums import Command

if TYPE_CHECKING:
    from pool_lite.adapters.protocol import StatementRef


@dataclass(frozen=True)
class Query:
    """A single SQL operation.

    ``command`` is an optional hint. When it names a command that produces
    no result set (``Command.UPDATE`` and friends) the result's rows are
    ``None``; when absent the query is treated as ``Command.EXECUTE``.

    ``ref`` is set by ``prepare`` and ties the query to the connection that
    prepared it.
    """

    statement: str
    command: Command | None = None
    ref: StatementRef | None = None

    @property
    def kind(self) -> Command:
        return self.command if self.command is not None else Command.EXECUTE

    @property
    def prepared(self) -> bool:
        return self.ref is not None

    def with_ref(self, ref: StatementRef) -> Query:
        return dataclasses.replace(self, ref=ref)

    def without_ref(self) -> Query:
        return dataclasses.replace(self, ref=None)

    def __str__(self) -> str:
        return self.statement
