"""Descriptor catalogs.

Constructed once at import and never mutated.
"""

from mssql_exporter.domains.catalogs.database import (
    DATABASE_FAST_DESCRIPTORS,
    DATABASE_SLOW_DESCRIPTORS,
)
from mssql_exporter.domains.catalogs.query_store import QUERY_STORE_DESCRIPTORS
from mssql_exporter.domains.catalogs.server import SERVER_DESCRIPTORS
from mssql_exporter.domains.collection.types import MetricCatalog

DEFAULT_CATALOG = MetricCatalog(
    server=SERVER_DESCRIPTORS,
    query_store=QUERY_STORE_DESCRIPTORS,
    database_fast=DATABASE_FAST_DESCRIPTORS,
    database_slow=DATABASE_SLOW_DESCRIPTORS,
)

__all__ = [
    "DATABASE_FAST_DESCRIPTORS",
    "DATABASE_SLOW_DESCRIPTORS",
    "DEFAULT_CATALOG",
    "QUERY_STORE_DESCRIPTORS",
    "SERVER_DESCRIPTORS",
]
