"""MCP tool: monitor_active_queries - Show currently running requests."""

import time

from common.sanitization.bounding import bound_text_fields
from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_range

TOOL_NAME = "monitor_active_queries"
TOOL_DESCRIPTION = (
    "Monitor currently running queries with execution statistics, wait info, and "
    "blocking information."
)

ROW_LIMIT = 100
TEXT_LIMITS = {"full_query": 2000, "current_statement": 1000}

_ACTIVE_QUERIES_SQL = """
SELECT
    r.session_id AS [session_id],
    r.request_id AS [request_id],
    r.status AS [status],
    r.command AS [command],
    DB_NAME(r.database_id) AS [database],
    r.wait_type AS [wait_type],
    r.wait_time AS [wait_time_ms],
    r.blocking_session_id AS [blocking_session_id],
    r.cpu_time AS [cpu_time_ms],
    r.total_elapsed_time AS [elapsed_time_ms],
    r.reads AS [reads],
    r.writes AS [writes],
    r.logical_reads AS [logical_reads],
    r.row_count AS [row_count],
    r.percent_complete AS [percent_complete],
    CAST(r.estimated_completion_time / 1000.0 AS DECIMAL(18,2)) AS [estimated_completion_sec],
    s.login_name AS [login_name],
    s.host_name AS [host_name],
    s.program_name AS [program_name],
    SUBSTRING(t.text, (r.statement_start_offset/2)+1,
        ((CASE r.statement_end_offset
            WHEN -1 THEN DATALENGTH(t.text)
            ELSE r.statement_end_offset
        END - r.statement_start_offset)/2) + 1) AS [current_statement],
    t.text AS [full_query]
FROM sys.dm_exec_requests r
INNER JOIN sys.dm_exec_sessions s ON r.session_id = s.session_id
CROSS APPLY sys.dm_exec_sql_text(r.sql_handle) t
WHERE r.session_id <> @@SPID
    AND r.total_elapsed_time >= @min_duration_ms{user_filter}
ORDER BY r.total_elapsed_time DESC
"""


def build_query(include_system_queries: bool) -> str:
    user_filter = "" if include_system_queries else "\n    AND s.is_user_process = 1"
    return _ACTIVE_QUERIES_SQL.format(user_filter=user_filter)


async def handler(min_duration_ms: int = 0, include_system_queries: bool = False) -> str:
    """List running requests other than this session's.

    Args:
        min_duration_ms: Only requests running at least this long.
        include_system_queries: Include background system sessions.

    Returns:
        JSON envelope with active_queries and count. Statement text is truncated.
    """
    start_time = time.monotonic()

    if err := validate_range(min_duration_ms, "min_duration_ms", TOOL_NAME, min_val=0):
        return err

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(
            build_query(include_system_queries),
            {"min_duration_ms": min_duration_ms},
            row_limit=ROW_LIMIT,
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    queries = bound_text_fields(result.rows, TEXT_LIMITS)
    return tool_success_response(
        {"active_queries": queries, "count": len(queries)},
        start_time,
        returned_count=len(queries),
        total_count=result.row_count_total,
        limit_applied=ROW_LIMIT,
    )
