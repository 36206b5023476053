"""MCP tool: monitor_blocking - Show blocking chains and head blockers."""

import time

from common.sanitization.bounding import bound_text_fields
from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception

TOOL_NAME = "monitor_blocking"
TOOL_DESCRIPTION = (
    "Monitor blocking sessions and lock chains. Shows which sessions are blocking "
    "others and identifies head blockers."
)

ROW_LIMIT = 100
TEXT_LIMITS = {"blocked_query": 1000, "blocking_query": 1000}

BLOCKING_SQL = """
WITH BlockingChain AS (
    SELECT
        r.session_id AS [blocked_session_id],
        r.blocking_session_id AS [blocking_session_id],
        r.wait_type AS [wait_type],
        r.wait_time AS [wait_time_ms],
        r.wait_resource AS [wait_resource],
        DB_NAME(r.database_id) AS [database],
        s.login_name AS [blocked_login],
        s.host_name AS [blocked_host],
        SUBSTRING(t.text, (r.statement_start_offset/2)+1,
            ((CASE r.statement_end_offset
                WHEN -1 THEN DATALENGTH(t.text)
                ELSE r.statement_end_offset
            END - r.statement_start_offset)/2) + 1) AS [blocked_query],
        0 AS [level]
    FROM sys.dm_exec_requests r
    INNER JOIN sys.dm_exec_sessions s ON r.session_id = s.session_id
    CROSS APPLY sys.dm_exec_sql_text(r.sql_handle) t
    WHERE r.blocking_session_id > 0
)
SELECT
    bc.*,
    bs.login_name AS [blocking_login],
    bs.host_name AS [blocking_host],
    bs.program_name AS [blocking_program],
    CASE WHEN br.sql_handle IS NOT NULL
        THEN (SELECT text FROM sys.dm_exec_sql_text(br.sql_handle))
        ELSE NULL
    END AS [blocking_query]
FROM BlockingChain bc
LEFT JOIN sys.dm_exec_sessions bs ON bc.blocking_session_id = bs.session_id
LEFT JOIN sys.dm_exec_requests br ON bc.blocking_session_id = br.session_id
ORDER BY bc.wait_time_ms DESC
"""

# Sessions that block others without being blocked themselves.
HEAD_BLOCKERS_SQL = """
SELECT DISTINCT r.blocking_session_id AS [session_id]
FROM sys.dm_exec_requests r
WHERE r.blocking_session_id > 0
    AND r.blocking_session_id NOT IN (
        SELECT session_id FROM sys.dm_exec_requests WHERE blocking_session_id > 0
    )
"""


async def handler() -> str:
    """Report blocked requests, who blocks them, and the head blockers."""
    start_time = time.monotonic()

    try:
        executor = Database.get_executor()
        chain = await executor.execute_query(BLOCKING_SQL, row_limit=ROW_LIMIT)
        head_blockers = await executor.execute_query(HEAD_BLOCKERS_SQL, row_limit=ROW_LIMIT)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    blocking = bound_text_fields(chain.rows, TEXT_LIMITS)
    return tool_success_response(
        {
            "blocking": blocking,
            "head_blockers": [row["session_id"] for row in head_blockers.rows],
            "count": len(blocking),
        },
        start_time,
    )
