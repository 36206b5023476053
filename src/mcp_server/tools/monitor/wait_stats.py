"""MCP tool: monitor_wait_stats - Report the top wait types."""

import time

from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_range

TOOL_NAME = "monitor_wait_stats"
TOOL_DESCRIPTION = (
    "Monitor wait statistics to identify performance bottlenecks. Shows wait types, "
    "counts, and times."
)

MAX_TOP = 100

# Benign background waits that dominate the totals on an idle server.
IDLE_WAIT_TYPES = (
    "BROKER_EVENTHANDLER",
    "BROKER_RECEIVE_WAITFOR",
    "BROKER_TASK_STOP",
    "BROKER_TO_FLUSH",
    "BROKER_TRANSMITTER",
    "CHECKPOINT_QUEUE",
    "CHKPT",
    "CLR_AUTO_EVENT",
    "CLR_MANUAL_EVENT",
    "CLR_SEMAPHORE",
    "DBMIRROR_DBM_EVENT",
    "DBMIRROR_EVENTS_QUEUE",
    "DBMIRROR_WORKER_QUEUE",
    "DBMIRRORING_CMD",
    "DIRTY_PAGE_POLL",
    "DISPATCHER_QUEUE_SEMAPHORE",
    "EXECSYNC",
    "FSAGENT",
    "FT_IFTS_SCHEDULER_IDLE_WAIT",
    "FT_IFTSHC_MUTEX",
    "HADR_CLUSAPI_CALL",
    "HADR_FILESTREAM_IOMGR_IOCOMPLETION",
    "HADR_LOGCAPTURE_WAIT",
    "HADR_NOTIFICATION_DEQUEUE",
    "HADR_TIMER_TASK",
    "HADR_WORK_QUEUE",
    "KSOURCE_WAKEUP",
    "LAZYWRITER_SLEEP",
    "LOGMGR_QUEUE",
    "MEMORY_ALLOCATION_EXT",
    "ONDEMAND_TASK_QUEUE",
    "PREEMPTIVE_XE_GETTARGETSTATE",
    "PWAIT_ALL_COMPONENTS_INITIALIZED",
    "PWAIT_DIRECTLOGCONSUMER_GETNEXT",
    "QDS_PERSIST_TASK_MAIN_LOOP_SLEEP",
    "QDS_ASYNC_QUEUE",
    "QDS_CLEANUP_STALE_QUERIES_TASK_MAIN_LOOP_SLEEP",
    "REQUEST_FOR_DEADLOCK_SEARCH",
    "RESOURCE_QUEUE",
    "SERVER_IDLE_CHECK",
    "SLEEP_BPOOL_FLUSH",
    "SLEEP_DBSTARTUP",
    "SLEEP_DCOMSTARTUP",
    "SLEEP_MASTERDBREADY",
    "SLEEP_MASTERMDREADY",
    "SLEEP_MASTERUPGRADED",
    "SLEEP_MSDBSTARTUP",
    "SLEEP_SYSTEMTASK",
    "SLEEP_TASK",
    "SLEEP_TEMPDBSTARTUP",
    "SNI_HTTP_ACCEPT",
    "SP_SERVER_DIAGNOSTICS_SLEEP",
    "SQLTRACE_BUFFER_FLUSH",
    "SQLTRACE_INCREMENTAL_FLUSH_SLEEP",
    "SQLTRACE_WAIT_ENTRIES",
    "WAIT_FOR_RESULTS",
    "WAITFOR",
    "WAITFOR_TASKSHUTDOWN",
    "WAIT_XTP_RECOVERY",
    "WAIT_XTP_HOST_WAIT",
    "WAIT_XTP_OFFLINE_CKPT_NEW_LOG",
    "WAIT_XTP_CKPT_CLOSE",
    "XE_DISPATCHER_JOIN",
    "XE_DISPATCHER_WAIT",
    "XE_TIMER_EVENT",
)
IDLE_WAIT_PREFIXES = ("PREEMPTIVE", "SQLTRACE", "XE_")

_WAIT_STATS_SQL = """
SELECT TOP (@top)
    wait_type AS [wait_type],
    waiting_tasks_count AS [waiting_tasks_count],
    wait_time_ms AS [total_wait_time_ms],
    max_wait_time_ms AS [max_wait_time_ms],
    signal_wait_time_ms AS [signal_wait_time_ms],
    wait_time_ms - signal_wait_time_ms AS [resource_wait_time_ms],
    CAST(100.0 * wait_time_ms / SUM(wait_time_ms) OVER() AS DECIMAL(5,2)) AS [percent_total]
FROM sys.dm_os_wait_stats
WHERE waiting_tasks_count > 0{idle_filter}
ORDER BY wait_time_ms DESC
"""


def build_query(exclude_idle: bool) -> str:
    """Return the wait-stats query, optionally excluding idle wait types."""
    if not exclude_idle:
        return _WAIT_STATS_SQL.format(idle_filter="")
    names = ", ".join(f"'{name}'" for name in IDLE_WAIT_TYPES)
    clauses = [f"\n    AND wait_type NOT IN ({names})"]
    clauses.extend(f"\n    AND wait_type NOT LIKE '{prefix}%'" for prefix in IDLE_WAIT_PREFIXES)
    return _WAIT_STATS_SQL.format(idle_filter="".join(clauses))


async def handler(top: int = 10, exclude_idle: bool = True) -> str:
    """Return the ``top`` wait types by total wait time."""
    start_time = time.monotonic()

    if err := validate_range(top, "top", TOOL_NAME, min_val=1, max_val=MAX_TOP):
        return err
    top = int(top)

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(
            build_query(exclude_idle), {"top": top}, row_limit=top
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "wait_stats": result.rows,
            "count": len(result.rows),
            "excluded_idle_waits": exclude_idle,
        },
        start_time,
    )
