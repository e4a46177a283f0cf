"""Scoped connection helper.

Wraps ``ConnectionFactory.open`` in a context manager so every handle is
closed on every exit path of the block that opened it.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.logging import logger
from mssql_exporter.core.protocols.connection import ConnectionFactory, DatabaseConnection


@asynccontextmanager
async def connection_scope(
    factory: ConnectionFactory,
    config: ConnectionConfig,
) -> AsyncIterator[DatabaseConnection]:
    """Open a connection for the duration of the block.

    Raises:
        ConnectError: The session could not be established; nothing to close.
    """
    connection = await factory.open(config)
    try:
        yield connection
    finally:
        try:
            await connection.close()
        except Exception as e:
            logger.with_context(database=config.database or "-").warning(
                f"Failed to close connection: {e}"
            )
