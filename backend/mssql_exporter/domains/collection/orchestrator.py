"""Top-level collection entry points, one call per scrape.

All database work inside one ``collect_fast``/``collect_slow`` call is
strictly sequential and every connection is opened and closed within the
step that uses it.  Concurrent scrapes each get their own connections; the
registries are the only shared state: each scrape resets its registry and
repopulates it, so scrapes of the same endpoint are serialized.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence

from mssql_exporter.core.config import ConnectionConfig
from mssql_exporter.core.exceptions import ConnectError, EnumerationError
from mssql_exporter.core.logging import logger
from mssql_exporter.core.protocols.connection import ConnectionFactory
from mssql_exporter.core.protocols.metrics_registry import MetricsRegistry
from mssql_exporter.domains.collection.collector import DescriptorCollector
from mssql_exporter.domains.collection.database_pass import DatabasePass
from mssql_exporter.domains.collection.enumerator import DatabaseEnumerator
from mssql_exporter.domains.collection.session import connection_scope
from mssql_exporter.domains.collection.types import BatchKind, CollectionContext, MetricCatalog


@dataclass(frozen=True)
class ScrapeResult:
    """Serialized response for one scrape."""

    body: bytes
    content_type: str
    error: Optional[str] = None
    status: int = 200


class CollectionOrchestrator:
    """Drives server-wide collection and the per-database passes."""

    def __init__(
        self,
        connection_factory: ConnectionFactory,
        base_config: ConnectionConfig,
        catalog: MetricCatalog,
        fast_registry: MetricsRegistry,
        slow_registry: MetricsRegistry,
        enumerator: DatabaseEnumerator | None = None,
        collector: DescriptorCollector | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            connection_factory: Opens every session used by a scrape.
            base_config: Server-level config; per-database passes derive copies.
            catalog: Descriptor batches to run.
            fast_registry: Receives server-wide, query store and fast metrics.
            slow_registry: Receives slow per-database metrics.
            enumerator: Lists target databases.
            collector: Runs single descriptors.
        """
        self.connection_factory = connection_factory
        self.base_config = base_config.with_database(None)
        self.catalog = catalog
        self.fast_registry = fast_registry
        self.slow_registry = slow_registry
        self.enumerator = enumerator or DatabaseEnumerator()
        self.collector = collector or DescriptorCollector()
        self._locks = {BatchKind.FAST: asyncio.Lock(), BatchKind.SLOW: asyncio.Lock()}
        self.database_pass = DatabasePass(
            connection_factory=connection_factory,
            catalog=catalog,
            registries={BatchKind.FAST: fast_registry, BatchKind.SLOW: slow_registry},
            collector=self.collector,
        )

    async def collect_fast(self) -> ScrapeResult:
        """Collect server-wide metrics, then the fast batch of every database."""
        async with self._locks[BatchKind.FAST]:
            self.fast_registry.reset()
            return await self._collect_fast()

    async def collect_slow(self) -> ScrapeResult:
        """Collect the slow batch of every database."""
        async with self._locks[BatchKind.SLOW]:
            self.slow_registry.reset()
            return await self._collect_slow()

    async def _collect_fast(self) -> ScrapeResult:
        log = logger.with_context(context_base="orchestrator", batch=BatchKind.FAST.value)
        registry = self.fast_registry

        try:
            server = await self.connection_factory.open(self.base_config)
        except ConnectError as e:
            return self._outage(registry, e, log)
        registry.set_up(1)

        context = CollectionContext(registry=registry, batch=BatchKind.FAST)
        try:
            for descriptor in self.catalog.server:
                await self.collector.run(server, descriptor, context)
        finally:
            await server.close()

        try:
            databases = await self._enumerate()
        except (ConnectError, EnumerationError) as e:
            log.error(f"Database scan aborted, keeping server-wide metrics: {e}")
            databases = []

        await self._run_passes(databases, BatchKind.FAST, log)
        return ScrapeResult(body=registry.generate(), content_type=registry.content_type)

    async def _collect_slow(self) -> ScrapeResult:
        log = logger.with_context(context_base="orchestrator", batch=BatchKind.SLOW.value)
        registry = self.slow_registry

        try:
            server = await self.connection_factory.open(self.base_config)
        except ConnectError as e:
            return self._outage(registry, e, log)
        registry.set_up(1)

        try:
            databases = await self.enumerator.list(server)
        except EnumerationError as e:
            log.error(f"Database scan aborted: {e}")
            databases = []
        finally:
            await server.close()

        await self._run_passes(databases, BatchKind.SLOW, log)
        return ScrapeResult(body=registry.generate(), content_type=registry.content_type)

    async def _enumerate(self) -> list[str]:
        async with connection_scope(self.connection_factory, self.base_config) as connection:
            return await self.enumerator.list(connection)

    async def _run_passes(self, databases: Sequence[str], batch: BatchKind, log) -> None:
        log.debug(f"Running {batch.value} pass over {len(databases)} databases")
        skipped = 0
        for database in databases:
            try:
                if not await self.database_pass.run(self.base_config, database, batch):
                    skipped += 1
            except Exception as e:
                skipped += 1
                log.with_context(database=database).exception(f"Database pass failed: {e}")
        if skipped:
            log.warning(f"Skipped {skipped} of {len(databases)} databases")

    @staticmethod
    def _outage(registry: MetricsRegistry, error: ConnectError, log) -> ScrapeResult:
        log.error(f"Failed to connect to database: {error.reason}")
        registry.set_up(0)
        return ScrapeResult(
            body=registry.generate_up(),
            content_type=registry.content_type,
            error=error.reason,
        )
