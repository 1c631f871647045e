"""PoolLite exception hierarchy.

All exceptions are PoolLite-specific. Raw driver exceptions are translated
by the adapters and chained, never exposed directly.

Errors come in two classes. Recoverable errors (``EngineError`` and its
subclasses) leave the connection usable and carry it as ``connection``.
Disconnect-class errors (``DisconnectError`` and its subclasses) tell the
pool manager to tear the connection down instead of retrying it.
"""

from __future__ import annotations

from typing import Any


class PoolLiteError(Exception):
    """Base exception for all PoolLite errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# --- Configuration ---


class ConfigurationError(PoolLiteError):
    """Raised when connect options are missing or invalid."""


# --- Engine ---


class EngineError(PoolLiteError):
    """Raised when the embedded engine reports a failure.

    The message is the engine's own diagnostic, unchanged.
    """

    def __init__(self, message: str, code: str | None = None, connection: Any = None) -> None:
        self.code = code
        self.connection = connection
        super().__init__(message)


class StatementError(EngineError):
    """Raised when a prepared statement ref is used outside its lifetime."""


# --- Transaction ---


class TransactionStateError(PoolLiteError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Disconnect ---


class DisconnectError(PoolLiteError):
    """Raised when the connection must be torn down rather than reused."""

    def __init__(self, message: str, connection: Any = None) -> None:
        self.connection = connection
        super().__init__(message)


class BusyConnectionError(DisconnectError):
    """Raised when a connection that is already checked out is checked out again."""

    def __init__(self, connection: Any = None) -> None:
        super().__init__("Database is busy", connection)
