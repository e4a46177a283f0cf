"""Value types for the collection domain."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Iterable, Optional, Sequence

from mssql_exporter.core.exceptions import DecodeError
from mssql_exporter.core.protocols.connection import Row
from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry
from mssql_exporter.schemas.metrics import GaugeSpec, Observation

SYSTEM_DATABASES = frozenset({"master", "tempdb", "model", "msdb"})


class BatchKind(str, Enum):
    """Scrape cadence a per-database pass runs for."""

    FAST = "fast"
    SLOW = "slow"


@dataclass(frozen=True)
class CollectionContext:
    """Explicit per-pass state handed to collectors and decode routines."""

    registry: MetricsRegistry
    batch: BatchKind = BatchKind.FAST
    database: Optional[str] = None

    def for_database(self, database: str) -> "CollectionContext":
        return replace(self, database=database)


Decoder = Callable[[Sequence[Row], CollectionContext], Iterable[Observation]]


@dataclass(frozen=True, eq=False)
class MetricDescriptor:
    """A fixed query plus the routine decoding its rows into observations.

    Identity is the query text.
    """

    name: str
    query: str
    gauges: tuple[GaugeSpec, ...]
    decode: Decoder

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetricDescriptor):
            return NotImplemented
        return self.query == other.query

    def __hash__(self) -> int:
        return hash(self.query)


@dataclass(frozen=True)
class MetricCatalog:
    """Every descriptor batch the orchestrator runs."""

    server: tuple[MetricDescriptor, ...]
    query_store: tuple[MetricDescriptor, ...]
    database_fast: tuple[MetricDescriptor, ...]
    database_slow: tuple[MetricDescriptor, ...]

    @property
    def fast_descriptors(self) -> tuple[MetricDescriptor, ...]:
        return self.server + self.query_store + self.database_fast

    @property
    def slow_descriptors(self) -> tuple[MetricDescriptor, ...]:
        return self.database_slow

    @property
    def descriptors(self) -> tuple[MetricDescriptor, ...]:
        return self.fast_descriptors + self.slow_descriptors


# -- decode helpers --


def as_number(value: Any, column: str) -> float:
    """Coerce a numeric column, rejecting NULL and non-numeric values."""
    if value is None:
        raise DecodeError(f"Column {column} is NULL")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Column {column} is not numeric: {value!r}") from e


def as_label(value: Any) -> str:
    """Render a column as a label value; NULL becomes the empty string."""
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value).strip()


def first_row(rows: Sequence[Row]) -> Row:
    """Return the only row of a scalar query."""
    if not rows:
        raise DecodeError("Query returned no rows")
    return rows[0]
