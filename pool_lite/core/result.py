"""Result normalization.

Turns raw engine output (column names plus a row stream) into a Result
whose shape depends only on the command kind, never on which query path
(direct statement or prepared ref) produced it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from pool_lite.core.enums import Command


@dataclass(frozen=True)
class Result:
    """Canonical result of one executed query.

    For row-returning commands ``columns`` and ``rows`` are lists (``rows``
    may be empty). For every other command both are ``None`` and
    ``num_rows`` is the number of rows the engine changed.
    """

    command: Command
    columns: list[str] | None = None
    rows: list[list[Any]] | None = None
    num_rows: int = 0


def normalize_result(
    command: Command,
    columns: Sequence[str] | None,
    rows: list[list[Any]],
    changes: int = 0,
) -> Result:
    """Build the Result for *command* from materialized engine output."""
    if not command.returns_rows:
        return Result(command=command, columns=None, rows=None, num_rows=changes)
    return Result(
        command=command,
        columns=list(columns or []),
        rows=rows,
        num_rows=len(rows),
    )
