"""Per-database descriptors for the fast and slow batches."""

from typing import Iterator, Sequence

from mssql_exporter.core.protocols.connection import Row
from mssql_exporter.domains.catalogs._labels import database_label
from mssql_exporter.domains.collection.types import (
    CollectionContext,
    MetricDescriptor,
    as_label,
    as_number,
)
from mssql_exporter.schemas.metrics import GaugeSpec, Observation

MISSING_INDEX_SUGGESTION = GaugeSpec(
    name="mssql_missing_index_suggestion",
    help="Suggested index creation",
    labels=("database", "object_id", "object_name", "proposed_index"),
)
OBJECT_FRAGMENTATION_PERCENT = GaugeSpec(
    name="mssql_object_fragmentation_percent",
    help="Show percent object fragmentation",
    labels=("database", "table_name", "index_name", "index_type", "index_level"),
)


def _decode_missing_index(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    database = database_label(context)
    for row in rows:
        yield Observation(
            MISSING_INDEX_SUGGESTION.name,
            1,
            {
                "database": database,
                "object_id": as_label(row[1]),
                "object_name": as_label(row[2]),
                "proposed_index": as_label(row[3]),
            },
        )


def _decode_fragmentation(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    database = database_label(context)
    for row in rows:
        yield Observation(
            OBJECT_FRAGMENTATION_PERCENT.name,
            as_number(row[4], "avg_fragmentation_in_percent"),
            {
                "database": database,
                "table_name": as_label(row[0]),
                "index_name": as_label(row[1]),
                "index_type": as_label(row[2]),
                "index_level": as_label(row[3]),
            },
        )


MISSING_INDEX = MetricDescriptor(
    name="mssql_missing_index",
    query="""SELECT
    db.[name] AS [DatabaseName]
    ,id.[object_id] AS [ObjectID]
    ,OBJECT_NAME(id.[object_id], db.[database_id]) AS [ObjectName]
    ,'CREATE INDEX [IX_' + OBJECT_NAME(id.[object_id], db.[database_id]) + '_' + REPLACE(REPLACE(REPLACE(ISNULL(id.[equality_columns], ''), ', ', '_'), '[', ''), ']', '') + CASE
        WHEN id.[equality_columns] IS NOT NULL
            AND id.[inequality_columns] IS NOT NULL
            THEN '_'
        ELSE ''
        END + REPLACE(REPLACE(REPLACE(ISNULL(id.[inequality_columns], ''), ', ', '_'), '[', ''), ']', '') + ']' + ' ON ' + id.[statement] + ' (' + ISNULL(id.[equality_columns], '') + CASE
        WHEN id.[equality_columns] IS NOT NULL
            AND id.[inequality_columns] IS NOT NULL
            THEN ','
        ELSE ''
        END + ISNULL(id.[inequality_columns], '') + ')' + ISNULL(' INCLUDE (' + id.[included_columns] + ')', '') AS [ProposedIndex]
FROM [sys].[dm_db_missing_index_group_stats] gs WITH (NOLOCK)
INNER JOIN [sys].[dm_db_missing_index_groups] ig WITH (NOLOCK) ON gs.[group_handle] = ig.[index_group_handle]
INNER JOIN [sys].[dm_db_missing_index_details] id WITH (NOLOCK) ON ig.[index_handle] = id.[index_handle]
INNER JOIN [sys].[databases] db WITH (NOLOCK) ON db.[database_id] = id.[database_id]
WHERE db.[database_id] = DB_ID()
OPTION (RECOMPILE)""",
    gauges=(MISSING_INDEX_SUGGESTION,),
    decode=_decode_missing_index,
)

OBJECT_FRAGMENTATION = MetricDescriptor(
    name="mssql_object_fragmentation",
    query="""SELECT
    OBJECT_NAME(ps.object_id) AS TableName
   ,i.name AS IndexName
   ,ips.index_type_desc
   ,index_level
   ,ips.avg_fragmentation_in_percent
   ,ips.avg_page_space_used_in_percent
   ,ips.page_count
FROM sys.dm_db_partition_stats ps
INNER JOIN sys.indexes i ON ps.object_id = i.object_id AND ps.index_id = i.index_id
CROSS APPLY sys.dm_db_index_physical_stats(DB_ID(), ps.object_id, ps.index_id, null, 'DETAILED') ips
ORDER BY ips.avg_fragmentation_in_percent DESC""",
    gauges=(OBJECT_FRAGMENTATION_PERCENT,),
    decode=_decode_fragmentation,
)

DATABASE_FAST_DESCRIPTORS = (MISSING_INDEX,)
DATABASE_SLOW_DESCRIPTORS = (OBJECT_FRAGMENTATION,)
