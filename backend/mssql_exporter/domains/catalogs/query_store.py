"""Query store descriptors.

Only run against databases whose query store is enabled; every observation is
labeled with the pass's target database.
"""

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

_IO_LABELS = (
    "database",
    "query_sql_text",
    "query_id",
    "query_text_id",
    "plan_id",
    "runtime_stats_id",
    "start_time",
    "end_time",
)

TOTAL_EXECUTION_COUNT = GaugeSpec(
    name="mssql_total_execution_count",
    help="Total Execution Count",
    labels=("database", "query_id", "query_text_id", "query_sql_text"),
)
AVG_DURATION = GaugeSpec(
    name="mssql_avg_duration_us",
    help="Average Query Duration in micro seconds",
    labels=(
        "database",
        "query_sql_text",
        "query_id",
        "query_text_id",
        "plan_id",
        "current_utc_time",
        "last_execution_time",
    ),
)
AVG_PHYSICAL_IO_READS = GaugeSpec(
    name="mssql_avg_physical_io_reads",
    help="Average Physical IO Reads",
    labels=_IO_LABELS,
)
AVG_ROWCOUNT = GaugeSpec(
    name="mssql_avg_rowcount",
    help="Average Row Count",
    labels=_IO_LABELS,
)
COUNT_EXECUTIONS = GaugeSpec(
    name="mssql_count_executions",
    help="Count Executions",
    labels=_IO_LABELS,
)
SUM_TOTAL_WAIT_MS = GaugeSpec(
    name="mssql_sum_total_wait_ms",
    help="Total Wait ms",
    labels=("database", "query_sql_text", "query_text_id", "query_id", "plan_id"),
)


def _decode_most_executed(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    # Only the single most executed query is reported.
    database = database_label(context)
    for row in rows[:1]:
        yield Observation(
            TOTAL_EXECUTION_COUNT.name,
            as_number(row[3], "total_execution_count"),
            {
                "database": database,
                "query_id": as_label(row[0]),
                "query_text_id": as_label(row[1]),
                "query_sql_text": as_label(row[2]),
            },
        )


def _decode_avg_duration(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    database = database_label(context)
    for row in rows:
        yield Observation(
            AVG_DURATION.name,
            as_number(row[0], "avg_duration"),
            {
                "database": database,
                "query_sql_text": as_label(row[1]),
                "query_id": as_label(row[2]),
                "query_text_id": as_label(row[3]),
                "plan_id": as_label(row[4]),
                "current_utc_time": as_label(row[5]),
                "last_execution_time": as_label(row[6]),
            },
        )


def _decode_avg_io(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    database = database_label(context)
    for row in rows:
        labels = {
            "database": database,
            "query_sql_text": as_label(row[1]),
            "query_id": as_label(row[2]),
            "query_text_id": as_label(row[3]),
            "plan_id": as_label(row[4]),
            "runtime_stats_id": as_label(row[5]),
            "start_time": as_label(row[6]),
            "end_time": as_label(row[7]),
        }
        yield Observation(AVG_PHYSICAL_IO_READS.name, as_number(row[0], "avg_physical_io_reads"), labels)
        yield Observation(AVG_ROWCOUNT.name, as_number(row[8], "avg_rowcount"), labels)
        yield Observation(COUNT_EXECUTIONS.name, as_number(row[9], "count_executions"), labels)


def _decode_most_wait(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    database = database_label(context)
    for row in rows:
        yield Observation(
            SUM_TOTAL_WAIT_MS.name,
            as_number(row[4], "sum_total_wait_ms"),
            {
                "database": database,
                "query_sql_text": as_label(row[0]),
                "query_text_id": as_label(row[1]),
                "query_id": as_label(row[2]),
                "plan_id": as_label(row[3]),
            },
        )


MOST_EXECUTED_QUERY = MetricDescriptor(
    name="mssql_most_exec_query",
    query="""SELECT q.query_id, qt.query_text_id, qt.query_sql_text, SUM(rs.count_executions) AS total_execution_count
FROM sys.query_store_query_text AS qt
JOIN sys.query_store_query AS q
    ON qt.query_text_id = q.query_text_id
JOIN sys.query_store_plan AS p
    ON q.query_id = p.query_id
JOIN sys.query_store_runtime_stats AS rs
    ON p.plan_id = rs.plan_id
WHERE rs.last_execution_time > DATEADD(hour, -1, GETUTCDATE())
GROUP BY q.query_id, qt.query_text_id, qt.query_sql_text
ORDER BY total_execution_count DESC""",
    gauges=(TOTAL_EXECUTION_COUNT,),
    decode=_decode_most_executed,
)

MOST_AVG_TIME_QUERY = MetricDescriptor(
    name="mssql_most_avg_time_query",
    query="""SELECT TOP 10 rs.avg_duration, qt.query_sql_text, q.query_id, qt.query_text_id, p.plan_id, GETUTCDATE() AS CurrentUTCTime, rs.last_execution_time
FROM sys.query_store_query_text AS qt
JOIN sys.query_store_query AS q
    ON qt.query_text_id = q.query_text_id
JOIN sys.query_store_plan AS p
    ON q.query_id = p.query_id
JOIN sys.query_store_runtime_stats AS rs
    ON p.plan_id = rs.plan_id
WHERE rs.last_execution_time > DATEADD(hour, -1, GETUTCDATE())
ORDER BY rs.avg_duration DESC""",
    gauges=(AVG_DURATION,),
    decode=_decode_avg_duration,
)

MOST_AVG_IO_QUERY = MetricDescriptor(
    name="mssql_most_avg_io_query",
    query="""SELECT TOP 10 rs.avg_physical_io_reads, qt.query_sql_text, q.query_id, qt.query_text_id, p.plan_id, rs.runtime_stats_id, rsi.start_time, rsi.end_time, rs.avg_rowcount, rs.count_executions
FROM sys.query_store_query_text AS qt
JOIN sys.query_store_query AS q
    ON qt.query_text_id = q.query_text_id
JOIN sys.query_store_plan AS p
    ON q.query_id = p.query_id
JOIN sys.query_store_runtime_stats AS rs
    ON p.plan_id = rs.plan_id
JOIN sys.query_store_runtime_stats_interval AS rsi
    ON rsi.runtime_stats_interval_id = rs.runtime_stats_interval_id
WHERE rsi.start_time >= DATEADD(hour, -1, GETUTCDATE())
ORDER BY rs.avg_physical_io_reads DESC""",
    gauges=(AVG_PHYSICAL_IO_READS, AVG_ROWCOUNT, COUNT_EXECUTIONS),
    decode=_decode_avg_io,
)

MOST_WAIT_QUERY = MetricDescriptor(
    name="mssql_most_wait_query",
    query="""SELECT TOP 10 qt.query_sql_text, qt.query_text_id, q.query_id, p.plan_id, sum(total_query_wait_time_ms) AS sum_total_wait_ms
FROM sys.query_store_wait_stats ws
JOIN sys.query_store_plan p ON ws.plan_id = p.plan_id
JOIN sys.query_store_query q ON p.query_id = q.query_id
JOIN sys.query_store_query_text qt ON q.query_text_id = qt.query_text_id
GROUP BY qt.query_sql_text, qt.query_text_id, q.query_id, p.plan_id
ORDER BY sum_total_wait_ms DESC""",
    gauges=(SUM_TOTAL_WAIT_MS,),
    decode=_decode_most_wait,
)

QUERY_STORE_DESCRIPTORS = (
    MOST_EXECUTED_QUERY,
    MOST_AVG_TIME_QUERY,
    MOST_AVG_IO_QUERY,
    MOST_WAIT_QUERY,
)
