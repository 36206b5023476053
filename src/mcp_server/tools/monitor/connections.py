"""MCP tool: monitor_connections - Summarize sessions and connections."""

import asyncio
import time

from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception

TOOL_NAME = "monitor_connections"
TOOL_DESCRIPTION = (
    "Monitor active connections to the database including summaries by login, host, "
    "and program."
)

GROUP_LIMIT = 50

SUMMARY_SQL = """
SELECT
    COUNT(*) AS [total_connections],
    SUM(CASE WHEN status = 'running' THEN 1 ELSE 0 END) AS [active_connections],
    SUM(CASE WHEN status = 'sleeping' THEN 1 ELSE 0 END) AS [sleeping_connections],
    SUM(CASE WHEN is_user_process = 1 THEN 1 ELSE 0 END) AS [user_connections],
    SUM(CASE WHEN is_user_process = 0 THEN 1 ELSE 0 END) AS [system_connections],
    COUNT(DISTINCT host_name) AS [unique_hosts],
    COUNT(DISTINCT login_name) AS [unique_logins],
    COUNT(DISTINCT program_name) AS [unique_programs]
FROM sys.dm_exec_sessions
"""

_GROUPED_SQL = """
SELECT
    {key_expr} AS [{key_alias}],
    COUNT(*) AS [connections],
    SUM(CASE WHEN status = 'running' THEN 1 ELSE 0 END) AS [active],
    MAX(last_request_end_time) AS [last_activity]
FROM sys.dm_exec_sessions
WHERE is_user_process = 1
GROUP BY {key_column}
ORDER BY COUNT(*) DESC
"""

BY_LOGIN_SQL = _GROUPED_SQL.format(
    key_expr="login_name", key_alias="login_name", key_column="login_name"
)
BY_HOST_SQL = _GROUPED_SQL.format(
    key_expr="ISNULL(host_name, 'N/A')", key_alias="host_name", key_column="host_name"
)
BY_PROGRAM_SQL = _GROUPED_SQL.format(
    key_expr="ISNULL(program_name, 'N/A')", key_alias="program_name", key_column="program_name"
)

DETAILS_SQL = """
SELECT TOP 50
    s.session_id AS [session_id],
    s.login_name AS [login_name],
    s.host_name AS [host_name],
    s.program_name AS [program_name],
    s.status AS [status],
    DB_NAME(s.database_id) AS [database],
    s.cpu_time AS [cpu_time_ms],
    s.memory_usage * 8 AS [memory_kb],
    s.reads AS [reads],
    s.writes AS [writes],
    s.login_time AS [login_time],
    s.last_request_start_time AS [last_request_start],
    s.last_request_end_time AS [last_request_end],
    c.client_net_address AS [client_address],
    c.local_net_address AS [server_address]
FROM sys.dm_exec_sessions s
LEFT JOIN sys.dm_exec_connections c ON s.session_id = c.session_id
WHERE s.is_user_process = 1
ORDER BY s.cpu_time DESC
"""


async def handler() -> str:
    """Summarize user sessions overall and by login, host and program."""
    start_time = time.monotonic()

    try:
        executor = Database.get_executor()
        summary, by_login, by_host, by_program, details = await asyncio.gather(
            executor.execute_query(SUMMARY_SQL, row_limit=1),
            executor.execute_query(BY_LOGIN_SQL, row_limit=GROUP_LIMIT),
            executor.execute_query(BY_HOST_SQL, row_limit=GROUP_LIMIT),
            executor.execute_query(BY_PROGRAM_SQL, row_limit=GROUP_LIMIT),
            executor.execute_query(DETAILS_SQL, row_limit=GROUP_LIMIT),
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "summary": summary.rows[0] if summary.rows else None,
            "by_login": by_login.rows,
            "by_host": by_host.rows,
            "by_program": by_program.rows,
            "details": details.rows,
        },
        start_time,
    )
