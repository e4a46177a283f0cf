"""Shared fixtures for the collection domain tests."""

import pytest
from pydantic import SecretStr

from mssql_exporter.adapters.connection.fake import FakeConnectionFactory
from mssql_exporter.adapters.metrics_registry.prometheus import PrometheusMetricsRegistry
from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.container import declare_gauges
from mssql_exporter.domains.collection.fakes.catalog import FAKE_CATALOG
from mssql_exporter.domains.collection.types import MetricCatalog


@pytest.fixture
def base_config() -> ConnectionConfig:
    return ConnectionConfig(host="sql.example.test", user="exporter", password=SecretStr("secret"))


@pytest.fixture
def factory() -> FakeConnectionFactory:
    return FakeConnectionFactory()


@pytest.fixture
def catalog() -> MetricCatalog:
    return FAKE_CATALOG


@pytest.fixture
def fast_registry() -> PrometheusMetricsRegistry:
    registry = PrometheusMetricsRegistry()
    declare_gauges(registry, FAKE_CATALOG.fast_descriptors)
    return registry


@pytest.fixture
def slow_registry() -> PrometheusMetricsRegistry:
    registry = PrometheusMetricsRegistry()
    declare_gauges(registry, FAKE_CATALOG.slow_descriptors)
    return registry
