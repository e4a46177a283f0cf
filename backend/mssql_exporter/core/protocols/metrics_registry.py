"""MetricsRegistry protocol for recording and serializing gauges.

One process-wide instance per scrape endpoint is built at startup, declared
from the descriptor catalogs and injected into the orchestrator.  Production
uses prometheus-client; tests can inject a fake that records observations.
"""

from typing import Mapping, Protocol, runtime_checkable

from mssql_exporter.schemas.metrics import GaugeSpec


@runtime_checkable
class MetricsRegistry(Protocol):
    """Protocol for a gauge registry with an always-present ``up`` gauge."""

    @property
    def content_type(self) -> str:
        """MIME type of the serialized output."""
        ...

    def declare(self, spec: GaugeSpec) -> None:
        """Register a gauge family before any value is set."""
        ...

    def set_gauge(self, name: str, labels: Mapping[str, str], value: float) -> None:
        """Set one labeled value (last write wins)."""
        ...

    def reset(self) -> None:
        """Drop every labeled series before a scrape repopulates them."""
        ...

    def set_up(self, value: float) -> None:
        """Set the ``up`` gauge."""
        ...

    def generate(self) -> bytes:
        """Serialize every gauge family."""
        ...

    def generate_up(self) -> bytes:
        """Serialize only the ``up`` gauge."""
        ...
