"""pymssql implementation of the connection protocols.

pymssql is a blocking DB-API driver, so every driver call runs in a worker
thread via ``asyncio.to_thread``.  ``login_timeout`` bounds the connect and
``timeout`` bounds every statement, so an overloaded server cannot stall a
scrape indefinitely.
"""

import asyncio
from typing import Any, Optional, Sequence

import pymssql

from mssql_exporter.adapters.connection.base import BaseConnection
from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.exceptions import ConnectError, QueryError
from mssql_exporter.core.protocols.connection import ConnectionFactory, Row

_APP_NAME = "mssql-exporter"


class PymssqlConnection(BaseConnection):
    """Session backed by a ``pymssql.Connection``."""

    def __init__(self, config: ConnectionConfig) -> None:
        super().__init__(config)
        self._conn: Optional[Any] = None

    async def _connect(self) -> None:
        cfg = self._config
        kwargs: dict[str, Any] = {
            "server": cfg.host,
            "port": str(cfg.port),
            "user": cfg.user,
            "password": cfg.password.get_secret_value(),
            "login_timeout": cfg.login_timeout,
            "timeout": cfg.query_timeout,
            "appname": _APP_NAME,
        }
        if cfg.database:
            kwargs["database"] = cfg.database
        try:
            self._conn = await asyncio.to_thread(pymssql.connect, **kwargs)
        except pymssql.Error as e:
            raise ConnectError(_describe(e), database=cfg.database) from e

    async def _execute(self, sql: str) -> Sequence[Row]:
        return await asyncio.to_thread(self._execute_blocking, sql)

    def _execute_blocking(self, sql: str) -> list[Row]:
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql)
            if cursor.description is None:
                return []
            return [tuple(row) for row in cursor.fetchall()]
        except pymssql.Error as e:
            raise QueryError(_describe(e), query=sql) from e
        finally:
            try:
                cursor.close()
            except pymssql.Error as e:
                self._logger.debug(f"Error while closing cursor: {_describe(e)}")

    async def _close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await asyncio.to_thread(conn.close)
        except pymssql.Error as e:
            self._logger.warning(f"Error while closing connection: {_describe(e)}")


class PymssqlConnectionFactory(ConnectionFactory):
    """Opens ``PymssqlConnection`` handles."""

    async def open(self, config: ConnectionConfig) -> PymssqlConnection:
        connection = PymssqlConnection(config)
        await connection.connect()
        return connection


def _describe(error: Exception) -> str:
    """Flatten a pymssql error into a single line.

    pymssql packs ``(code, b"message")`` into ``args`` for server errors.
    """
    parts = []
    for arg in error.args:
        if isinstance(arg, bytes):
            arg = arg.decode("utf-8", errors="replace")
        parts.append(str(arg))
    return " ".join(parts).replace("\n", " ").strip() or error.__class__.__name__
