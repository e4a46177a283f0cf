"""Minimal descriptor catalog for testing the collection domain.

One descriptor per batch, each with a trivially scriptable query, so tests
can drive the orchestrator through ``FakeConnectionFactory`` without the
production SQL texts.
"""

from typing import Iterator, Sequence

from mssql_exporter.core.protocols.connection import Row
from mssql_exporter.domains.collection.types import (
    CollectionContext,
    MetricCatalog,
    MetricDescriptor,
    as_number,
    first_row,
)
from mssql_exporter.schemas.metrics import GaugeSpec, Observation

SERVER_QUERY = "SELECT server_value"
QUERY_STORE_QUERY = "SELECT query_store_value"
FAST_QUERY = "SELECT fast_value"
SLOW_QUERY = "SELECT slow_value"

SERVER_GAUGE = GaugeSpec(name="test_server_metric", help="Server metric")
QUERY_STORE_GAUGE = GaugeSpec(
    name="test_query_store_metric",
    help="Query store metric",
    labels=("database",),
)
FAST_GAUGE = GaugeSpec(name="test_fast_metric", help="Fast metric", labels=("database",))
SLOW_GAUGE = GaugeSpec(name="test_slow_metric", help="Slow metric", labels=("database",))


def _decode_server(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    yield Observation(SERVER_GAUGE.name, as_number(first_row(rows)[0], "value"))


def _per_database(spec: GaugeSpec):
    def decode(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
        for row in rows:
            yield Observation(
                spec.name,
                as_number(row[0], "value"),
                {"database": context.database or ""},
            )

    return decode


SERVER_DESCRIPTOR = MetricDescriptor("server", SERVER_QUERY, (SERVER_GAUGE,), _decode_server)
QUERY_STORE_DESCRIPTOR = MetricDescriptor(
    "query_store", QUERY_STORE_QUERY, (QUERY_STORE_GAUGE,), _per_database(QUERY_STORE_GAUGE)
)
FAST_DESCRIPTOR = MetricDescriptor("fast", FAST_QUERY, (FAST_GAUGE,), _per_database(FAST_GAUGE))
SLOW_DESCRIPTOR = MetricDescriptor("slow", SLOW_QUERY, (SLOW_GAUGE,), _per_database(SLOW_GAUGE))

FAKE_CATALOG = MetricCatalog(
    server=(SERVER_DESCRIPTOR,),
    query_store=(QUERY_STORE_DESCRIPTOR,),
    database_fast=(FAST_DESCRIPTOR,),
    database_slow=(SLOW_DESCRIPTOR,),
)
