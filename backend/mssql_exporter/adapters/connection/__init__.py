"""Source database connection adapters."""

from mssql_exporter.adapters.connection.fake import FakeConnection, FakeConnectionFactory
from mssql_exporter.adapters.connection.pymssql import (
    PymssqlConnection,
    PymssqlConnectionFactory,
)

__all__ = [
    "FakeConnection",
    "FakeConnectionFactory",
    "PymssqlConnection",
    "PymssqlConnectionFactory",
]
