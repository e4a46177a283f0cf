"""Fake MetricsRegistry for testing.

Records every ``set_gauge`` call so tests can assert on observations without
parsing Prometheus exposition text.
"""

from typing import Mapping

from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry
from mssql_exporter.schemas.metrics import GaugeSpec, Observation


class FakeMetricsRegistry(MetricsRegistry):
    """In-memory spy implementing the MetricsRegistry protocol."""

    def __init__(self) -> None:
        self.specs: dict[str, GaugeSpec] = {}
        self.observations: list[Observation] = []
        self.up: float | None = None
        self.reset_calls = 0

    @property
    def content_type(self) -> str:
        return "text/plain"

    def declare(self, spec: GaugeSpec) -> None:
        self.specs.setdefault(spec.name, spec)

    def set_gauge(self, name: str, labels: Mapping[str, str], value: float) -> None:
        if name not in self.specs:
            raise KeyError(f"Gauge {name} was never declared")
        self.observations.append(Observation(metric=name, value=value, labels=dict(labels)))

    def reset(self) -> None:
        self.observations.clear()
        self.up = None
        self.reset_calls += 1

    def set_up(self, value: float) -> None:
        self.up = value

    def generate(self) -> bytes:
        lines = [f"up {self.up}"] if self.up is not None else []
        for obs in self.observations:
            labels = ",".join(f'{k}="{v}"' for k, v in obs.labels.items())
            lines.append(f"{obs.metric}{{{labels}}} {obs.value}")
        return ("\n".join(lines) + "\n").encode()

    def generate_up(self) -> bytes:
        return f"up {self.up}\n".encode()

    # -- test helpers --

    def values(self, metric: str) -> list[Observation]:
        return [obs for obs in self.observations if obs.metric == metric]

    def databases(self) -> set[str]:
        """Every ``database`` label value seen so far."""
        return {obs.labels["database"] for obs in self.observations if "database" in obs.labels}
