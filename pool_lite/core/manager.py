"""Single-connection manager.

ConnectionManager and AsyncConnectionManager drive the connection
protocol the way a pool manager does: checkout before handing the
connection out, checkin afterwards whatever happened, and teardown when a
disconnect-class error says the connection can no longer be trusted.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from pool_lite.core.config import ConnectionConfig, resolve_config
from pool_lite.core.connection import AsyncConnection, Connection
from pool_lite.core.exceptions import DisconnectError

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Synchronous manager for one lazily opened Connection."""

    def __init__(
        self,
        config: ConnectionConfig | Mapping[str, Any] | None = None,
        **options: Any,
    ) -> None:
        self.config = resolve_config(config, **options)
        self._connection: Connection | None = None

    @property
    def connection(self) -> Connection | None:
        return self._connection

    def connect(self) -> Connection:
        """Open the connection if it is not open yet."""
        if self._connection is None:
            self._connection = Connection.connect(self.config)
        return self._connection

    @contextmanager
    def get_connection(self) -> Iterator[Connection]:
        """Check the connection out for the duration of the block."""
        connection = self.connect()
        try:
            connection.checkout()
        except DisconnectError:
            self._reset()
            raise
        try:
            yield connection
        except DisconnectError:
            self._reset()
            raise
        finally:
            connection.checkin()

    def close(self) -> None:
        """Disconnect and forget the connection."""
        if self._connection is not None:
            self._connection.disconnect()
            self._connection = None

    def _reset(self) -> None:
        logger.debug("dropping connection to %s after disconnect error", self.config.database)
        self.close()


class AsyncConnectionManager:
    """Asynchronous manager for one lazily opened AsyncConnection."""

    def __init__(
        self,
        config: ConnectionConfig | Mapping[str, Any] | None = None,
        **options: Any,
    ) -> None:
        self.config = resolve_config(config, **options)
        self._connection: AsyncConnection | None = None

    @property
    def connection(self) -> AsyncConnection | None:
        return self._connection

    async def connect(self) -> AsyncConnection:
        """Open the connection if it is not open yet."""
        if self._connection is None:
            self._connection = await AsyncConnection.connect(self.config)
        return self._connection

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[AsyncConnection]:
        """Check the connection out for the duration of the block."""
        connection = await self.connect()
        try:
            connection.checkout()
        except DisconnectError:
            await self._reset()
            raise
        try:
            yield connection
        except DisconnectError:
            await self._reset()
            raise
        finally:
            connection.checkin()

    async def close(self) -> None:
        """Disconnect and forget the connection."""
        if self._connection is not None:
            await self._connection.disconnect()
            self._connection = None

    async def _reset(self) -> None:
        logger.debug("dropping connection to %s after disconnect error", self.config.database)
        await self.close()
