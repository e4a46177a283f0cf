"""Metrics registry adapters."""

from mssql_exporter.adapters.metrics_registry.fake import FakeMetricsRegistry
from mssql_exporter.adapters.metrics_registry.prometheus import PrometheusMetricsRegistry

__all__ = ["FakeMetricsRegistry", "PrometheusMetricsRegistry"]
