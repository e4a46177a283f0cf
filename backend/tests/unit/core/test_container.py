"""Unit tests for container wiring."""

import pytest

from mssql_exporter.adapters.connection.fake import FakeConnectionFactory
from mssql_exporter.adapters.connection.pymssql import PymssqlConnectionFactory
from mssql_exporter.adapters.metrics_registry import FakeMetricsRegistry, PrometheusMetricsRegistry
from mssql_exporter.core.config import Settings
from mssql_exporter.core.container import build_container
from mssql_exporter.domains.catalogs import DEFAULT_CATALOG
from mssql_exporter.domains.collection.fakes.catalog import FAKE_CATALOG


@pytest.fixture
def settings():
    return Settings(
        SERVER="sql01",
        USERNAME="exporter",
        PASSWORD="secret",
        PORT=1533,
        QUERY_TIMEOUT=12,
        _env_file=None,
    )


class TestBuildContainer:
    def test_defaults(self, settings):
        container = build_container(settings)

        assert isinstance(container.fast_registry, PrometheusMetricsRegistry)
        assert isinstance(container.slow_registry, PrometheusMetricsRegistry)
        assert container.fast_registry is not container.slow_registry
        assert isinstance(container.orchestrator.connection_factory, PymssqlConnectionFactory)

    def test_declares_every_gauge_per_batch(self, settings):
        fast, slow = FakeMetricsRegistry(), FakeMetricsRegistry()

        build_container(
            settings,
            connection_factory=FakeConnectionFactory(),
            fast_registry=fast,
            slow_registry=slow,
        )

        assert set(fast.specs) == {
            spec.name for d in DEFAULT_CATALOG.fast_descriptors for spec in d.gauges
        }
        assert set(slow.specs) == {
            spec.name for d in DEFAULT_CATALOG.slow_descriptors for spec in d.gauges
        }

    def test_base_config_from_settings(self, settings):
        container = build_container(
            settings, catalog=FAKE_CATALOG, connection_factory=FakeConnectionFactory()
        )

        config = container.orchestrator.base_config
        assert (config.host, config.port, config.query_timeout) == ("sql01", 1533, 12)
        assert config.database is None

    def test_default_catalog_declares_into_prometheus(self, settings):
        container = build_container(settings, connection_factory=FakeConnectionFactory())

        output = container.fast_registry.generate().decode()
        assert "# HELP mssql_deadlocks" in output
        assert "mssql_object_fragmentation_percent" not in output
        assert "mssql_object_fragmentation_percent" in container.slow_registry.generate().decode()
