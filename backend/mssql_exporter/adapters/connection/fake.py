"""Fake connection adapters for testing.

Scripted per target database: each query maps to the rows it returns or the
exception it raises.  The factory records every handle it opened so tests
can assert on connection lifecycles without a SQL Server.
"""

from typing import Optional, Sequence, Union

from mssql_exporter.adapters.connection.base import BaseConnection
from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.exceptions import ConnectError, QueryError
from mssql_exporter.core.protocols.connection import ConnectionFactory, ConnectionState, Row

ScriptedResult = Union[Sequence[Row], Exception]

ANY_DATABASE = "*"


class FakeConnection(BaseConnection):
    """In-memory session answering from a script."""

    def __init__(
        self,
        config: ConnectionConfig,
        factory: "FakeConnectionFactory",
    ) -> None:
        super().__init__(config)
        self._factory = factory
        self.executed: list[str] = []
        self.close_calls = 0
        self.driver_close_calls = 0

    async def _connect(self) -> None:
        reason = self._factory.connect_failures.get(self.database)
        if reason is not None:
            raise ConnectError(reason, database=self.database)

    async def _execute(self, sql: str) -> Sequence[Row]:
        self.executed.append(sql)
        self._factory.executed.append((self.database, sql))
        result = self._factory.lookup(self.database, sql)
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def close(self) -> None:
        self.close_calls += 1
        await super().close()

    async def _close(self) -> None:
        self.driver_close_calls += 1


class FakeConnectionFactory(ConnectionFactory):
    """In-memory spy implementing the ConnectionFactory protocol.

    Usage:
        factory = FakeConnectionFactory()
        factory.script(None, "SELECT 1", [(1,)])
        factory.fail_connect("Sales")
        conn = await factory.open(config)
        assert await conn.execute("SELECT 1") == [(1,)]
    """

    def __init__(self) -> None:
        self.scripts: dict[Optional[str], dict[str, ScriptedResult]] = {}
        self.connect_failures: dict[Optional[str], str] = {}
        self.connections: list[FakeConnection] = []
        self.executed: list[tuple[Optional[str], str]] = []
        self.max_live = 0

    # -- scripting --

    def script(self, database: Optional[str], query: str, result: ScriptedResult) -> None:
        """Answer ``query`` on ``database`` (``ANY_DATABASE`` for all targets)."""
        self.scripts.setdefault(database, {})[query] = result

    def fail_connect(self, database: Optional[str], reason: str = "Login failed") -> None:
        """Make every connect to ``database`` raise ``ConnectError``."""
        self.connect_failures[database] = reason

    def lookup(self, database: Optional[str], query: str) -> ScriptedResult:
        for key in (database, ANY_DATABASE):
            scripted = self.scripts.get(key, {})
            if query in scripted:
                return scripted[query]
        return QueryError("No scripted result", query=query)

    # -- ConnectionFactory protocol --

    async def open(self, config: ConnectionConfig) -> FakeConnection:
        connection = FakeConnection(config, self)
        self.connections.append(connection)
        await connection.connect()
        self.max_live = max(self.max_live, len(self.live_connections))
        return connection

    # -- test helpers --

    @property
    def live_connections(self) -> list[FakeConnection]:
        return [c for c in self.connections if c.state is ConnectionState.OPEN]

    def opened_for(self, database: Optional[str]) -> list[FakeConnection]:
        return [c for c in self.connections if c.database == database]

    def queries_for(self, database: Optional[str]) -> list[str]:
        return [sql for db, sql in self.executed if db == database]
