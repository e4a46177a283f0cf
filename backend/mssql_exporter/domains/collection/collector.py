"""Runs one descriptor against one open connection."""

from typing import Sequence

from mssql_exporter.core.exceptions import ConnectionStateError, DecodeError, QueryError
from mssql_exporter.core.logging import logger
from mssql_exporter.core.protocols.connection import DatabaseConnection, Row
from mssql_exporter.domains.collection.types import (
    SYSTEM_DATABASES,
    CollectionContext,
    MetricDescriptor,
)
from mssql_exporter.schemas.metrics import Observation

# Exceptions a decode routine raises on rows of an unexpected shape.
_DECODE_FAILURES = (DecodeError, IndexError, KeyError, TypeError, ValueError)


class DescriptorCollector:
    """Executes a descriptor's query and forwards the decoded observations.

    Never raises: a failed statement or an undecodable result set counts as
    zero observations for that descriptor so the batch can continue.
    """

    async def run(
        self,
        connection: DatabaseConnection,
        descriptor: MetricDescriptor,
        context: CollectionContext,
    ) -> int:
        """Collect ``descriptor`` and return the number of observations recorded."""
        log = logger.with_context(
            context_base="collector",
            descriptor=descriptor.name,
            database=context.database or "-",
        )
        try:
            rows = await connection.execute(descriptor.query)
        except (QueryError, ConnectionStateError) as e:
            log.error(f"Error executing SQL query: {e}")
            return 0

        try:
            observations = self._decode(rows, descriptor, context)
            for obs in observations:
                context.registry.set_gauge(obs.metric, obs.labels, obs.value)
        except _DECODE_FAILURES as e:
            log.error(f"Error decoding query result: {e.__class__.__name__}: {e}")
            return 0
        except Exception as e:
            log.exception(f"Unexpected error decoding query result: {e}")
            return 0

        log.debug(f"Recorded {len(observations)} observations from {len(rows)} rows")
        return len(observations)

    @staticmethod
    def _decode(
        rows: Sequence[Row],
        descriptor: MetricDescriptor,
        context: CollectionContext,
    ) -> list[Observation]:
        """Decode every row up front so a failure records nothing."""
        return [
            obs
            for obs in descriptor.decode(rows, context)
            if obs.labels.get("database") not in SYSTEM_DATABASES
        ]
