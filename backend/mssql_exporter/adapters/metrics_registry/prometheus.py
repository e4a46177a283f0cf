"""Prometheus implementation of the MetricsRegistry protocol.

Each instance owns a dedicated CollectorRegistry so the fast (``/metrics``)
and slow (``/metrics-slow``) endpoints are isolated from each other and from
the default global registry.  Gauges are keyed by metric name; the ``up``
gauge is registered at construction.
"""

import threading
from typing import Mapping

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry
from mssql_exporter.schemas.metrics import GaugeSpec

UP_METRIC = "up"


class PrometheusMetricsRegistry(MetricsRegistry):
    """Prometheus-backed gauge registry."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or CollectorRegistry()
        self._gauges: dict[str, Gauge] = {}
        self._specs: dict[str, GaugeSpec] = {}
        self._lock = threading.Lock()

        self._up = Gauge(UP_METRIC, "UP Status", registry=self._registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def declare(self, spec: GaugeSpec) -> None:
        with self._lock:
            existing = self._specs.get(spec.name)
            if existing is not None:
                if existing.labels != spec.labels:
                    raise ValueError(
                        f"Gauge {spec.name} already declared with labels {existing.labels}, "
                        f"got {spec.labels}"
                    )
                return
            if spec.name == UP_METRIC:
                raise ValueError("The up gauge is reserved")
            self._gauges[spec.name] = Gauge(
                spec.name,
                spec.help,
                list(spec.labels),
                registry=self._registry,
            )
            self._specs[spec.name] = spec

    def set_gauge(self, name: str, labels: Mapping[str, str], value: float) -> None:
        gauge = self._gauges.get(name)
        if gauge is None:
            raise KeyError(f"Gauge {name} was never declared")
        if labels:
            gauge.labels(**labels).set(value)
        else:
            gauge.set(value)

    def reset(self) -> None:
        with self._lock:
            labeled = [self._gauges[name] for name, spec in self._specs.items() if spec.labels]
        for gauge in labeled:
            gauge.clear()

    def set_up(self, value: float) -> None:
        self._up.set(value)

    def generate(self) -> bytes:
        return generate_latest(self._registry)

    def generate_up(self) -> bytes:
        return generate_latest(self._registry.restricted_registry([UP_METRIC]))
