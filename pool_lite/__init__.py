"""PoolLite - pooled connection adapter for embedded SQLite databases."""

from __future__ import annotations

from pool_lite.adapters.protocol import AsyncEngineHandle, StatementRef, SyncEngineHandle
from pool_lite.core.config import ConnectionConfig
from pool_lite.core.connection import AsyncConnection, Connection
from pool_lite.core.enums import (
    MEMORY,
    Command,
    ConnectionStatus,
    Database,
    TransactionMode,
    TransactionStatus,
)
from pool_lite.core.exceptions import (
    BusyConnectionError,
    ConfigurationError,
    DisconnectError,
    EngineError,
    PoolLiteError,
    StatementError,
    TransactionStateError,
)
from pool_lite.core.manager import AsyncConnectionManager, ConnectionManager
from pool_lite.core.query import Query
from pool_lite.core.result import Result

__all__ = [
    # Connection
    "ConnectionConfig",
    "Connection",
    "AsyncConnection",
    "ConnectionManager",
    "AsyncConnectionManager",
    # Values
    "Query",
    "Result",
    "StatementRef",
    # Engine protocols
    "SyncEngineHandle",
    "AsyncEngineHandle",
    # Enums
    "MEMORY",
    "Database",
    "Command",
    "ConnectionStatus",
    "TransactionStatus",
    "TransactionMode",
    # Exceptions
    "PoolLiteError",
    "ConfigurationError",
    "EngineError",
    "StatementError",
    "TransactionStateError",
    "DisconnectError",
    "BusyConnectionError",
]
