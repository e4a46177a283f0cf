"""Unit tests for the metrics registry adapters."""

import threading

import pytest

from mssql_exporter.adapters.metrics_registry import FakeMetricsRegistry, PrometheusMetricsRegistry
from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry
from mssql_exporter.schemas.metrics import GaugeSpec

PLAIN = GaugeSpec(name="mssql_deadlocks", help="Deadlocks")
LABELED = GaugeSpec(name="mssql_connections", help="Connections", labels=("database", "state"))


# ---------------------------------------------------------------------------
# FakeMetricsRegistry
# ---------------------------------------------------------------------------


class TestFakeMetricsRegistry:
    """Tests for the FakeMetricsRegistry test helper."""

    def test_records_observations(self):
        fake = FakeMetricsRegistry()
        fake.declare(LABELED)
        fake.set_gauge(LABELED.name, {"database": "HR", "state": "current"}, 4)

        [obs] = fake.values(LABELED.name)
        assert obs.value == 4
        assert fake.databases() == {"HR"}

    def test_reset_drops_observations_keeps_declarations(self):
        fake = FakeMetricsRegistry()
        fake.declare(PLAIN)
        fake.set_gauge(PLAIN.name, {}, 1)
        fake.set_up(1)
        fake.reset()

        assert fake.observations == []
        assert fake.up is None
        assert fake.reset_calls == 1
        fake.set_gauge(PLAIN.name, {}, 2)


# ---------------------------------------------------------------------------
# PrometheusMetricsRegistry
# ---------------------------------------------------------------------------


class TestPrometheusMetricsRegistry:
    """Tests for the Prometheus adapter."""

    def test_satisfies_protocol(self):
        assert isinstance(PrometheusMetricsRegistry(), MetricsRegistry)

    def test_registry_is_separate_from_default(self):
        from prometheus_client import REGISTRY

        adapter = PrometheusMetricsRegistry()
        assert adapter._registry is not REGISTRY

    def test_two_instances_do_not_collide(self):
        first, second = PrometheusMetricsRegistry(), PrometheusMetricsRegistry()
        first.declare(PLAIN)
        second.declare(PLAIN)

        first.set_gauge(PLAIN.name, {}, 3)

        assert "mssql_deadlocks 3.0" in first.generate().decode()
        assert "mssql_deadlocks 0.0" in second.generate().decode()

    def test_set_gauges(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(PLAIN)
        adapter.declare(LABELED)

        adapter.set_up(1)
        adapter.set_gauge(PLAIN.name, {}, 2)
        adapter.set_gauge(LABELED.name, {"database": "HR", "state": "current"}, 12)
        output = adapter.generate().decode()

        assert "up 1.0" in output
        assert "mssql_deadlocks 2.0" in output
        assert 'mssql_connections{database="HR",state="current"} 12.0' in output

    def test_last_write_wins(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(LABELED)

        adapter.set_gauge(LABELED.name, {"database": "HR", "state": "current"}, 1)
        adapter.set_gauge(LABELED.name, {"database": "HR", "state": "current"}, 5)
        output = adapter.generate().decode()

        assert 'mssql_connections{database="HR",state="current"} 5.0' in output
        assert 'mssql_connections{database="HR",state="current"} 1.0' not in output

    def test_generate_up_contains_only_up(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(PLAIN)
        adapter.set_gauge(PLAIN.name, {}, 9)
        adapter.set_up(0)

        output = adapter.generate_up().decode()

        assert "up 0.0" in output
        assert "mssql_deadlocks" not in output

    def test_reset_drops_labeled_series(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(LABELED)
        adapter.set_gauge(LABELED.name, {"database": "Sales", "state": "current"}, 7)

        adapter.reset()
        adapter.set_gauge(LABELED.name, {"database": "HR", "state": "current"}, 3)
        output = adapter.generate().decode()

        assert "Sales" not in output
        assert 'mssql_connections{database="HR",state="current"} 3.0' in output

    def test_reset_keeps_declarations_and_plain_gauges(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(PLAIN)
        adapter.declare(LABELED)
        adapter.set_gauge(PLAIN.name, {}, 2)

        adapter.reset()
        output = adapter.generate().decode()

        assert "mssql_deadlocks 2.0" in output
        assert "# HELP mssql_connections Connections" in output

    def test_redeclare_same_labels_is_reused(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(LABELED)
        adapter.declare(GaugeSpec(name=LABELED.name, help="Other help", labels=LABELED.labels))

    def test_redeclare_other_labels_rejected(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(LABELED)

        with pytest.raises(ValueError):
            adapter.declare(GaugeSpec(name=LABELED.name, help="x", labels=("database",)))

    def test_up_is_reserved(self):
        with pytest.raises(ValueError):
            PrometheusMetricsRegistry().declare(GaugeSpec(name="up", help="x"))

    def test_undeclared_gauge_rejected(self):
        with pytest.raises(KeyError):
            PrometheusMetricsRegistry().set_gauge("mssql_nope", {}, 1)

    def test_wrong_labels_rejected(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(LABELED)

        with pytest.raises(ValueError):
            adapter.set_gauge(LABELED.name, {"database": "HR"}, 1)

    def test_concurrent_writes(self):
        adapter = PrometheusMetricsRegistry()
        adapter.declare(LABELED)

        def write(database: str) -> None:
            for i in range(200):
                adapter.set_gauge(LABELED.name, {"database": database, "state": "current"}, i)

        threads = [threading.Thread(target=write, args=(f"db{n}",)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        output = adapter.generate().decode()
        for n in range(8):
            assert f'mssql_connections{{database="db{n}",state="current"}} 199.0' in output

    def test_content_type_is_prometheus_text(self):
        assert PrometheusMetricsRegistry().content_type.startswith("text/plain")
