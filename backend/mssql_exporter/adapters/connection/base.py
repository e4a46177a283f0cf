"""Lifecycle state machine shared by every connection adapter.

Subclasses implement the three driver hooks; this class guarantees the
``CONNECTING -> OPEN -> CLOSED`` / ``CONNECTING -> FAILED`` transitions,
exclusive use of the handle and idempotent close.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.exceptions import ConnectError, ConnectionStateError
from mssql_exporter.core.logging import logger
from mssql_exporter.core.protocols.connection import ConnectionState, Row


class BaseConnection(ABC):
    """Base class for ``DatabaseConnection`` implementations."""

    def __init__(self, config: ConnectionConfig) -> None:
        self._config = config
        self._state = ConnectionState.CONNECTING
        self._busy = False
        self._logger = logger.with_context(
            context_base="connection",
            server=config.host,
            database=config.database or "-",
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def database(self) -> Optional[str]:
        return self._config.database

    @property
    def config(self) -> ConnectionConfig:
        return self._config

    async def connect(self) -> None:
        """Establish the session; only valid from ``CONNECTING``."""
        if self._state is not ConnectionState.CONNECTING:
            raise ConnectionStateError(f"Cannot connect a handle in state {self._state.value}")
        try:
            await self._connect()
        except ConnectError:
            self._state = ConnectionState.FAILED
            raise
        except Exception as e:
            self._state = ConnectionState.FAILED
            raise ConnectError(str(e), database=self.database) from e
        self._state = ConnectionState.OPEN
        self._logger.debug("Connected")

    async def execute(self, sql: str) -> Sequence[Row]:
        """Run one statement on the open session."""
        if self._state is not ConnectionState.OPEN:
            raise ConnectionStateError(f"Cannot execute on a handle in state {self._state.value}")
        if self._busy:
            raise ConnectionStateError("Handle is already executing a statement")
        self._busy = True
        try:
            return await self._execute(sql)
        finally:
            self._busy = False

    async def close(self) -> None:
        """Close the session; a no-op unless the handle is open."""
        if self._state is not ConnectionState.OPEN:
            return
        try:
            await self._close()
        finally:
            self._state = ConnectionState.CLOSED
            self._logger.debug("Connection closed")

    @abstractmethod
    async def _connect(self) -> None:
        """Open the driver session or raise ``ConnectError``."""

    @abstractmethod
    async def _execute(self, sql: str) -> Sequence[Row]:
        """Run one statement or raise ``QueryError``."""

    @abstractmethod
    async def _close(self) -> None:
        """Terminate the driver session and wait for it to finish."""
