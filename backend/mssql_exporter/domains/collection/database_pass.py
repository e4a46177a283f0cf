"""One connect, collect, close cycle against a single target database."""

from typing import Mapping, Sequence

from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.exceptions import ConnectError, ConnectionStateError, QueryError
from mssql_exporter.core.logging import logger
from mssql_exporter.core.protocols.connection import ConnectionFactory, DatabaseConnection, Row
from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry
from mssql_exporter.domains.collection.collector import DescriptorCollector
from mssql_exporter.domains.collection.session import connection_scope
from mssql_exporter.domains.collection.types import (
    BatchKind,
    CollectionContext,
    MetricCatalog,
    MetricDescriptor,
)

QUERY_STORE_DETECTION_QUERY = "SELECT desired_state_desc FROM sys.database_query_store_options"


def query_store_enabled(rows: Sequence[Row]) -> bool:
    """Query store is on if any row reports a state other than ``OFF``, NULL included."""
    return any(row and row[0] != "OFF" for row in rows)


class DatabasePass:
    """Runs the per-database batch for one database on its own connection.

    A database that cannot be reached is skipped for this scrape; the caller
    continues with the next one.
    """

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        catalog: MetricCatalog,
        registries: Mapping[BatchKind, MetricsRegistry],
        collector: DescriptorCollector | None = None,
        detection_query: str = QUERY_STORE_DETECTION_QUERY,
    ) -> None:
        self.connection_factory = connection_factory
        self.catalog = catalog
        self.registries = registries
        self.collector = collector or DescriptorCollector()
        self.detection_query = detection_query

    async def run(self, base_config: ConnectionConfig, database: str, batch: BatchKind) -> bool:
        """Collect ``batch`` for ``database``.

        Returns:
            ``False`` if the database was skipped because the connect failed.
        """
        log = logger.with_context(context_base="database_pass", database=database, batch=batch.value)
        config = base_config.with_database(database)
        context = CollectionContext(
            registry=self.registries[batch],
            batch=batch,
            database=database,
        )

        try:
            async with connection_scope(self.connection_factory, config) as connection:
                if batch is BatchKind.FAST:
                    await self._run_fast(connection, context, log)
                else:
                    await self._run_batch(connection, self.catalog.database_slow, context)
        except ConnectError as e:
            log.warning(f"Skipping database for this scrape, connect failed: {e.reason}")
            return False

        log.debug("Database pass complete")
        return True

    async def _run_fast(self, connection: DatabaseConnection, context: CollectionContext, log) -> None:
        if await self._detect_query_store(connection, log):
            log.debug("Query store enabled")
            await self._run_batch(connection, self.catalog.query_store, context)
        await self._run_batch(connection, self.catalog.database_fast, context)

    async def _detect_query_store(self, connection: DatabaseConnection, log) -> bool:
        try:
            rows = await connection.execute(self.detection_query)
        except (QueryError, ConnectionStateError) as e:
            log.error(f"Query store detection failed, treating as disabled: {e}")
            return False
        return query_store_enabled(rows)

    async def _run_batch(
        self,
        connection: DatabaseConnection,
        descriptors: Sequence[MetricDescriptor],
        context: CollectionContext,
    ) -> None:
        for descriptor in descriptors:
            await self.collector.run(connection, descriptor, context)
