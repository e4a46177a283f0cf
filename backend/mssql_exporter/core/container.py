"""Process-wide object graph.

Initialization order: settings, then one registry per endpoint with every
catalog gauge declared, then the connection factory, then the orchestrator.
"""

from dataclasses import dataclass

from mssql_exporter.adapters.connection.pymssql import PymssqlConnectionFactory
from mssql_exporter.adapters.metrics_registry.prometheus import PrometheusMetricsRegistry
from mssql_exporter.core.config import Settings
from mssql_exporter.core.protocols.connection import ConnectionFactory
from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry
from mssql_exporter.domains.catalogs import DEFAULT_CATALOG
from mssql_exporter.domains.collection.orchestrator import CollectionOrchestrator
from mssql_exporter.domains.collection.types import MetricCatalog, MetricDescriptor


@dataclass
class Container:
    """Everything the exporter needs at runtime."""

    settings: Settings
    fast_registry: MetricsRegistry
    slow_registry: MetricsRegistry
    orchestrator: CollectionOrchestrator


def declare_gauges(registry: MetricsRegistry, descriptors: tuple[MetricDescriptor, ...]) -> None:
    """Declare every gauge the descriptors populate, in catalog order."""
    for descriptor in descriptors:
        for spec in descriptor.gauges:
            registry.declare(spec)


def build_container(
    settings: Settings,
    *,
    catalog: MetricCatalog = DEFAULT_CATALOG,
    connection_factory: ConnectionFactory | None = None,
    fast_registry: MetricsRegistry | None = None,
    slow_registry: MetricsRegistry | None = None,
) -> Container:
    """Build the container; tests pass fakes for the optional collaborators."""
    fast_registry = fast_registry or PrometheusMetricsRegistry()
    slow_registry = slow_registry or PrometheusMetricsRegistry()
    declare_gauges(fast_registry, catalog.fast_descriptors)
    declare_gauges(slow_registry, catalog.slow_descriptors)

    orchestrator = CollectionOrchestrator(
        connection_factory=connection_factory or PymssqlConnectionFactory(),
        base_config=settings.connection_config(),
        catalog=catalog,
        fast_registry=fast_registry,
        slow_registry=slow_registry,
    )
    return Container(
        settings=settings,
        fast_registry=fast_registry,
        slow_registry=slow_registry,
        orchestrator=orchestrator,
    )
