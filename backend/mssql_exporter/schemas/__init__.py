"""Shared value types."""

from mssql_exporter.schemas.metrics import GaugeSpec, Observation

__all__ = ["GaugeSpec", "Observation"]
