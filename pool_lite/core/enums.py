"""Connection, transaction and command enumerations."""

from __future__ import annotations

from enum import Enum


class Database(Enum):
    """Symbolic database identifiers."""

    MEMORY = ":memory:"


MEMORY = Database.MEMORY


class ConnectionStatus(Enum):
    """Checkout status of a connection."""

    IDLE = "idle"
    BUSY = "busy"


class TransactionStatus(Enum):
    """Whether the engine handle has an open transaction."""

    IDLE = "idle"
    TRANSACTION = "transaction"


class Command(Enum):
    """Kind of SQL operation a query performs.

    Only ``EXECUTE`` and ``SELECT`` produce a result set. Every other kind
    yields a result whose ``rows`` is ``None``.
    """

    EXECUTE = "execute"
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    CREATE = "create"
    DROP = "drop"
    ALTER = "alter"
    BEGIN = "begin"
    COMMIT = "commit"
    ROLLBACK = "rollback"

    @property
    def returns_rows(self) -> bool:
        return self in (Command.EXECUTE, Command.SELECT)


class TransactionMode(Enum):
    """Locking behaviour of ``BEGIN``."""

    DEFERRED = "DEFERRED"
    IMMEDIATE = "IMMEDIATE"
    EXCLUSIVE = "EXCLUSIVE"
