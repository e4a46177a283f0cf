"""Connection protocols for the source database.

The collection domain depends on these protocols rather than on a driver.
Production uses pymssql; tests inject scripted fakes.
"""

from enum import Enum
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from mssql_exporter.core.config import ConnectionConfig

Row = tuple[Any, ...]


class ConnectionState(str, Enum):
    """Lifecycle of a connection handle.

    ``CONNECTING -> OPEN -> CLOSED`` or ``CONNECTING -> FAILED``.  No state
    permits re-opening.
    """

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


@runtime_checkable
class DatabaseConnection(Protocol):
    """One live session, exclusively owned by the pass that opened it."""

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        ...

    @property
    def database(self) -> Optional[str]:
        """Target database, ``None`` for a server-level session."""
        ...

    async def execute(self, sql: str) -> Sequence[Row]:
        """Run exactly one statement and return its complete result set.

        Raises:
            QueryError: The statement failed or timed out.
            ConnectionStateError: The handle is not open.
        """
        ...

    async def close(self) -> None:
        """Close the session and wait for the driver to confirm.

        Calling ``close`` again after the first success is a no-op.
        """
        ...


@runtime_checkable
class ConnectionFactory(Protocol):
    """Opens sessions from a ``ConnectionConfig``."""

    async def open(self, config: ConnectionConfig) -> DatabaseConnection:
        """Establish a session.

        Raises:
            ConnectError: Authentication, network failure or login timeout.
        """
        ...
