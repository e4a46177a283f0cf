"""Label helpers for per-database descriptors."""

from mssql_exporter.core.exceptions import DecodeError
from mssql_exporter.domains.collection.types import CollectionContext


def database_label(context: CollectionContext) -> str:
    """Target database of the pass; per-database metrics are always labeled with it."""
    if not context.database:
        raise DecodeError("Per-database descriptor run without a target database")
    return context.database
