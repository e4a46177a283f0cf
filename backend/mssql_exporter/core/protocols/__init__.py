"""Protocols for the exporter's infrastructure seams."""

from mssql_exporter.core.protocols.connection import (
    ConnectionFactory,
    ConnectionState,
    DatabaseConnection,
    Row,
)
from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry

__all__ = [
    "ConnectionFactory",
    "ConnectionState",
    "DatabaseConnection",
    "MetricsRegistry",
    "Row",
]
