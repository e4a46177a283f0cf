"""Metrics collection domain."""

from mssql_exporter.domains.collection.collector import DescriptorCollector
from mssql_exporter.domains.collection.database_pass import DatabasePass
from mssql_exporter.domains.collection.enumerator import DatabaseEnumerator
from mssql_exporter.domains.collection.orchestrator import CollectionOrchestrator, ScrapeResult
from mssql_exporter.domains.collection.types import (
    SYSTEM_DATABASES,
    BatchKind,
    CollectionContext,
    MetricCatalog,
    MetricDescriptor,
)

__all__ = [
    "SYSTEM_DATABASES",
    "BatchKind",
    "CollectionContext",
    "CollectionOrchestrator",
    "DatabaseEnumerator",
    "DatabasePass",
    "DescriptorCollector",
    "MetricCatalog",
    "MetricDescriptor",
    "ScrapeResult",
]
