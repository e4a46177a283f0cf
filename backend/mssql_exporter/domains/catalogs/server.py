"""Server-wide descriptors, run once per fast scrape on the server connection."""

from typing import Iterator, Sequence

from mssql_exporter.core.protocols.connection import Row
from mssql_exporter.domains.collection.types import (
    CollectionContext,
    MetricDescriptor,
    as_label,
    as_number,
    first_row,
)
from mssql_exporter.schemas.metrics import GaugeSpec, Observation

INSTANCE_LOCAL_TIME = GaugeSpec(
    name="mssql_instance_local_time",
    help="Number of seconds since epoch on local instance",
)
CONNECTIONS = GaugeSpec(
    name="mssql_connections",
    help="Number of active connections",
    labels=("database", "state"),
)
DEADLOCKS = GaugeSpec(
    name="mssql_deadlocks",
    help="Number of lock requests per second that resulted in a deadlock since last restart",
)
USER_ERRORS = GaugeSpec(
    name="mssql_user_errors",
    help="Number of user errors/sec since last restart",
)
KILL_CONNECTION_ERRORS = GaugeSpec(
    name="mssql_kill_connection_errors",
    help="Number of kill connection errors/sec since last restart",
)
LOG_GROWTHS = GaugeSpec(
    name="mssql_log_growths",
    help="Total number of times the transaction log for the database has been expanded last restart",
    labels=("database",),
)
PAGE_LIFE_EXPECTANCY = GaugeSpec(
    name="mssql_page_life_expectancy",
    help=(
        "Indicates the minimum number of seconds a page will stay in the buffer pool on this "
        "node without references. The traditional advice from Microsoft used to be that the "
        "PLE should remain above 300 seconds"
    ),
)
IO_STALL = GaugeSpec(
    name="mssql_io_stall",
    help="Wait time (ms) of stall since last restart",
    labels=("database", "type"),
)
IO_STALL_TOTAL = GaugeSpec(
    name="mssql_io_stall_total",
    help="Wait time (ms) of stall since last restart",
    labels=("database",),
)
BATCH_REQUESTS = GaugeSpec(
    name="mssql_batch_requests",
    help=(
        "Number of Transact-SQL command batches received per second. This statistic is "
        "affected by all constraints (such as I/O, number of users, cachesize, complexity of "
        "requests, and so on). High batch requests mean good throughput"
    ),
)
PAGE_FAULT_COUNT = GaugeSpec(
    name="mssql_page_fault_count",
    help="Number of page faults since last restart",
)
MEMORY_UTILIZATION_PERCENTAGE = GaugeSpec(
    name="mssql_memory_utilization_percentage",
    help="Percentage of memory utilization",
)
TOTAL_PHYSICAL_MEMORY_KB = GaugeSpec(
    name="mssql_total_physical_memory_kb",
    help="Total physical memory in KB",
)
AVAILABLE_PHYSICAL_MEMORY_KB = GaugeSpec(
    name="mssql_available_physical_memory_kb",
    help="Available physical memory in KB",
)
TOTAL_PAGE_FILE_KB = GaugeSpec(
    name="mssql_total_page_file_kb",
    help="Total page file in KB",
)
AVAILABLE_PAGE_FILE_KB = GaugeSpec(
    name="mssql_available_page_file_kb",
    help="Available page file in KB",
)


def _scalar(spec: GaugeSpec):
    """Decoder for a query returning one numeric cell."""

    def decode(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
        yield Observation(spec.name, as_number(first_row(rows)[0], spec.name))

    return decode


def _decode_connections(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    for row in rows:
        yield Observation(
            CONNECTIONS.name,
            as_number(row[1], "connections"),
            {"database": as_label(row[0]), "state": "current"},
        )


def _decode_log_growths(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    for row in rows:
        yield Observation(
            LOG_GROWTHS.name,
            as_number(row[1], "cntr_value"),
            {"database": as_label(row[0])},
        )


_IO_STALL_TYPES = ((1, "read"), (2, "write"), (4, "queued_read"), (5, "queued_write"))


def _decode_io_stall(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    for row in rows:
        database = as_label(row[0])
        yield Observation(IO_STALL_TOTAL.name, as_number(row[3], "io_stall"), {"database": database})
        for index, kind in _IO_STALL_TYPES:
            yield Observation(
                IO_STALL.name,
                as_number(row[index], f"io_stall_{kind}"),
                {"database": database, "type": kind},
            )


def _decode_batch_requests(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    for row in rows:
        yield Observation(BATCH_REQUESTS.name, as_number(row[0], "cntr_value"))


def _decode_process_memory(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    row = first_row(rows)
    yield Observation(PAGE_FAULT_COUNT.name, as_number(row[0], "page_fault_count"))
    yield Observation(
        MEMORY_UTILIZATION_PERCENTAGE.name,
        as_number(row[1], "memory_utilization_percentage"),
    )


def _decode_sys_memory(rows: Sequence[Row], context: CollectionContext) -> Iterator[Observation]:
    row = first_row(rows)
    specs = (
        TOTAL_PHYSICAL_MEMORY_KB,
        AVAILABLE_PHYSICAL_MEMORY_KB,
        TOTAL_PAGE_FILE_KB,
        AVAILABLE_PAGE_FILE_KB,
    )
    for index, spec in enumerate(specs):
        yield Observation(spec.name, as_number(row[index], spec.name))


INSTANCE_LOCAL_TIME_DESCRIPTOR = MetricDescriptor(
    name="mssql_instance_local_time",
    query="SELECT DATEDIFF(second, '19700101', GETUTCDATE())",
    gauges=(INSTANCE_LOCAL_TIME,),
    decode=_scalar(INSTANCE_LOCAL_TIME),
)

CONNECTIONS_DESCRIPTOR = MetricDescriptor(
    name="mssql_connections",
    query="""SELECT DB_NAME(sP.dbid)
        , COUNT(sP.spid)
FROM sys.sysprocesses sP
GROUP BY DB_NAME(sP.dbid)""",
    gauges=(CONNECTIONS,),
    decode=_decode_connections,
)

DEADLOCKS_DESCRIPTOR = MetricDescriptor(
    name="mssql_deadlocks",
    query="""SELECT cntr_value
FROM sys.dm_os_performance_counters
where counter_name = 'Number of Deadlocks/sec' AND instance_name = '_Total'""",
    gauges=(DEADLOCKS,),
    decode=_scalar(DEADLOCKS),
)

USER_ERRORS_DESCRIPTOR = MetricDescriptor(
    name="mssql_user_errors",
    query="""SELECT cntr_value
FROM sys.dm_os_performance_counters
where counter_name = 'Errors/sec' AND instance_name = 'User Errors'""",
    gauges=(USER_ERRORS,),
    decode=_scalar(USER_ERRORS),
)

KILL_CONNECTION_ERRORS_DESCRIPTOR = MetricDescriptor(
    name="mssql_kill_connection_errors",
    query="""SELECT cntr_value
FROM sys.dm_os_performance_counters
where counter_name = 'Errors/sec' AND instance_name = 'Kill Connection Errors'""",
    gauges=(KILL_CONNECTION_ERRORS,),
    decode=_scalar(KILL_CONNECTION_ERRORS),
)

LOG_GROWTHS_DESCRIPTOR = MetricDescriptor(
    name="mssql_log_growths",
    query="""SELECT rtrim(instance_name), cntr_value
FROM sys.dm_os_performance_counters where counter_name = 'Log Growths'
and instance_name <> '_Total'""",
    gauges=(LOG_GROWTHS,),
    decode=_decode_log_growths,
)

PAGE_LIFE_EXPECTANCY_DESCRIPTOR = MetricDescriptor(
    name="mssql_page_life_expectancy",
    query="""SELECT TOP 1 cntr_value
FROM sys.dm_os_performance_counters with (nolock) where counter_name = 'Page life expectancy'""",
    gauges=(PAGE_LIFE_EXPECTANCY,),
    decode=_scalar(PAGE_LIFE_EXPECTANCY),
)

IO_STALL_DESCRIPTOR = MetricDescriptor(
    name="mssql_io_stall",
    query="""SELECT
cast(DB_Name(a.database_id) as varchar) as name,
    max(io_stall_read_ms),
    max(io_stall_write_ms),
    max(io_stall),
    max(io_stall_queued_read_ms),
    max(io_stall_queued_write_ms)
FROM
sys.dm_io_virtual_file_stats(null, null) a
INNER JOIN sys.master_files b ON a.database_id = b.database_id and a.file_id = b.file_id
group by a.database_id""",
    gauges=(IO_STALL, IO_STALL_TOTAL),
    decode=_decode_io_stall,
)

BATCH_REQUESTS_DESCRIPTOR = MetricDescriptor(
    name="mssql_batch_requests",
    query="""SELECT TOP 1 cntr_value
FROM sys.dm_os_performance_counters where counter_name = 'Batch Requests/sec'""",
    gauges=(BATCH_REQUESTS,),
    decode=_decode_batch_requests,
)

PROCESS_MEMORY_DESCRIPTOR = MetricDescriptor(
    name="mssql_os_process_memory",
    query="""SELECT page_fault_count, memory_utilization_percentage
from sys.dm_os_process_memory""",
    gauges=(PAGE_FAULT_COUNT, MEMORY_UTILIZATION_PERCENTAGE),
    decode=_decode_process_memory,
)

SYS_MEMORY_DESCRIPTOR = MetricDescriptor(
    name="mssql_os_sys_memory",
    query="""SELECT total_physical_memory_kb, available_physical_memory_kb, total_page_file_kb, available_page_file_kb
from sys.dm_os_sys_memory""",
    gauges=(
        TOTAL_PHYSICAL_MEMORY_KB,
        AVAILABLE_PHYSICAL_MEMORY_KB,
        TOTAL_PAGE_FILE_KB,
        AVAILABLE_PAGE_FILE_KB,
    ),
    decode=_decode_sys_memory,
)

SERVER_DESCRIPTORS = (
    INSTANCE_LOCAL_TIME_DESCRIPTOR,
    CONNECTIONS_DESCRIPTOR,
    DEADLOCKS_DESCRIPTOR,
    USER_ERRORS_DESCRIPTOR,
    KILL_CONNECTION_ERRORS_DESCRIPTOR,
    LOG_GROWTHS_DESCRIPTOR,
    PAGE_LIFE_EXPECTANCY_DESCRIPTOR,
    IO_STALL_DESCRIPTOR,
    BATCH_REQUESTS_DESCRIPTOR,
    PROCESS_MEMORY_DESCRIPTOR,
    SYS_MEMORY_DESCRIPTOR,
)
