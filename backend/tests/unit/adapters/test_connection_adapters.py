"""Unit tests for the connection adapters and their lifecycle state machine."""

import pymssql
import pytest
from pydantic import SecretStr

from mssql_exporter.adapters.connection import pymssql as pymssql_adapter
from mssql_exporter.adapters.connection.fake import FakeConnectionFactory
from mssql_exporter.adapters.connection.pymssql import PymssqlConnectionFactory
from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.exceptions import ConnectError, ConnectionStateError, QueryError
from mssql_exporter.core.protocols.connection import (
    ConnectionFactory,
    ConnectionState,
    DatabaseConnection,
)

CONFIG = ConnectionConfig(
    host="sql.example.test",
    port=1533,
    user="exporter",
    password=SecretStr("secret"),
    login_timeout=5,
    query_timeout=20,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class StubCursor:
    """Minimal DB-API cursor."""

    def __init__(self, driver: "StubDriverConnection") -> None:
        self._driver = driver
        self.description = None
        self.closed = False

    def execute(self, sql: str) -> None:
        self._driver.statements.append(sql)
        result = self._driver.results.get(sql)
        if isinstance(result, Exception):
            raise result
        self._rows = result or []
        self.description = (("col", 1, None, None, None, None, None),) if result is not None else None

    def fetchall(self):
        return list(self._rows)

    def close(self) -> None:
        self.closed = True


class StubDriverConnection:
    """Minimal ``pymssql.Connection`` stand-in."""

    def __init__(self, results=None) -> None:
        self.results = results or {}
        self.statements: list[str] = []
        self.close_calls = 0

    def cursor(self) -> StubCursor:
        return StubCursor(self)

    def close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def driver(monkeypatch):
    stub = StubDriverConnection({"SELECT 1": [(1,)], "SELECT name": [("HR",), ("Sales",)]})
    captured: dict = {}

    def connect(**kwargs):
        captured.update(kwargs)
        return stub

    monkeypatch.setattr(pymssql_adapter.pymssql, "connect", connect)
    stub.connect_kwargs = captured
    return stub


# ---------------------------------------------------------------------------
# Protocol conformance
# ---------------------------------------------------------------------------


class TestProtocols:
    def test_factories_satisfy_protocol(self):
        assert isinstance(PymssqlConnectionFactory(), ConnectionFactory)
        assert isinstance(FakeConnectionFactory(), ConnectionFactory)

    @pytest.mark.asyncio
    async def test_fake_connection_satisfies_protocol(self):
        connection = await FakeConnectionFactory().open(CONFIG)
        assert isinstance(connection, DatabaseConnection)


# ---------------------------------------------------------------------------
# PymssqlConnection
# ---------------------------------------------------------------------------


class TestPymssqlConnection:
    """Driver calls and error translation."""

    @pytest.mark.asyncio
    async def test_connect_passes_timeouts_and_target(self, driver):
        await PymssqlConnectionFactory().open(CONFIG.with_database("HR"))

        kwargs = driver.connect_kwargs
        assert kwargs["server"] == "sql.example.test"
        assert kwargs["port"] == "1533"
        assert kwargs["user"] == "exporter"
        assert kwargs["password"] == "secret"
        assert kwargs["login_timeout"] == 5
        assert kwargs["timeout"] == 20
        assert kwargs["database"] == "HR"

    @pytest.mark.asyncio
    async def test_server_level_connect_has_no_database(self, driver):
        await PymssqlConnectionFactory().open(CONFIG)

        assert "database" not in driver.connect_kwargs

    @pytest.mark.asyncio
    async def test_execute_returns_tuples(self, driver):
        connection = await PymssqlConnectionFactory().open(CONFIG)

        assert await connection.execute("SELECT name") == [("HR",), ("Sales",)]

    @pytest.mark.asyncio
    async def test_statement_without_result_set(self, driver):
        connection = await PymssqlConnectionFactory().open(CONFIG)

        assert await connection.execute("SET NOCOUNT ON") == []

    @pytest.mark.asyncio
    async def test_driver_error_becomes_query_error(self, driver):
        driver.results["SELECT broken"] = pymssql.OperationalError(
            208, b"Invalid object name 'sys.nope'."
        )
        connection = await PymssqlConnectionFactory().open(CONFIG)

        with pytest.raises(QueryError, match="Invalid object name"):
            await connection.execute("SELECT broken")
        assert connection.state is ConnectionState.OPEN

    @pytest.mark.asyncio
    async def test_connect_error_translated(self, monkeypatch):
        def connect(**kwargs):
            raise pymssql.OperationalError(18456, b"Login failed for user 'exporter'.")

        monkeypatch.setattr(pymssql_adapter.pymssql, "connect", connect)

        with pytest.raises(ConnectError, match="Login failed") as exc_info:
            await PymssqlConnectionFactory().open(CONFIG.with_database("HR"))
        assert exc_info.value.database == "HR"

    @pytest.mark.asyncio
    async def test_close_waits_for_driver_once(self, driver):
        connection = await PymssqlConnectionFactory().open(CONFIG)

        await connection.close()
        await connection.close()

        assert driver.close_calls == 1
        assert connection.state is ConnectionState.CLOSED


# ---------------------------------------------------------------------------
# Lifecycle state machine
# ---------------------------------------------------------------------------


class TestLifecycle:
    """CONNECTING -> OPEN -> CLOSED, CONNECTING -> FAILED."""

    @pytest.mark.asyncio
    async def test_open_then_closed(self):
        factory = FakeConnectionFactory()
        connection = await factory.open(CONFIG)
        assert connection.state is ConnectionState.OPEN

        await connection.close()
        assert connection.state is ConnectionState.CLOSED

    @pytest.mark.asyncio
    async def test_failed_connect(self):
        factory = FakeConnectionFactory()
        factory.fail_connect(None, "network unreachable")

        with pytest.raises(ConnectError, match="network unreachable"):
            await factory.open(CONFIG)

        [connection] = factory.connections
        assert connection.state is ConnectionState.FAILED

    @pytest.mark.asyncio
    async def test_double_close_is_noop(self):
        factory = FakeConnectionFactory()
        connection = await factory.open(CONFIG)

        await connection.close()
        await connection.close()

        assert connection.close_calls == 2
        assert connection.driver_close_calls == 1

    @pytest.mark.asyncio
    async def test_close_after_failed_connect_is_noop(self):
        factory = FakeConnectionFactory()
        factory.fail_connect(None)
        with pytest.raises(ConnectError):
            await factory.open(CONFIG)

        [connection] = factory.connections
        await connection.close()

        assert connection.driver_close_calls == 0
        assert connection.state is ConnectionState.FAILED

    @pytest.mark.asyncio
    async def test_execute_after_close_rejected(self):
        connection = await FakeConnectionFactory().open(CONFIG)
        await connection.close()

        with pytest.raises(ConnectionStateError):
            await connection.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_reopen_rejected(self):
        connection = await FakeConnectionFactory().open(CONFIG)
        await connection.close()

        with pytest.raises(ConnectionStateError):
            await connection.connect()
