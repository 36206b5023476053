"""MCP tool: analyze_query - Estimated plan and cached statistics for a query."""

import logging
import time
from typing import Any, Dict, List, Optional, Union

from common.errors import McpError, QueryValidationError, sanitize_exception
from dal.database import Database
from dal.mssql.showplan import parse_plan_xml
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import require_non_empty, validate_mapping, validate_max_length

TOOL_NAME = "analyze_query"
TOOL_DESCRIPTION = (
    "Analyze a SQL query to get execution plan, statistics, and performance "
    "recommendations. The query is compiled, not executed."
)
logger = logging.getLogger(__name__)

PATTERN_PREFIX_CHARS = 50

QUERY_STATS_SQL = """
SELECT TOP 1
    qs.execution_count AS [execution_count],
    qs.total_worker_time / 1000 AS [total_cpu_time_ms],
    qs.total_elapsed_time / 1000 AS [total_elapsed_time_ms],
    qs.total_logical_reads AS [total_logical_reads],
    qs.total_logical_writes AS [total_logical_writes],
    qs.total_physical_reads AS [total_physical_reads],
    qs.total_rows AS [total_rows],
    qs.last_execution_time AS [last_execution_time],
    CASE WHEN qs.execution_count > 0
        THEN qs.total_worker_time / qs.execution_count / 1000 END AS [avg_cpu_time_ms],
    CASE WHEN qs.execution_count > 0
        THEN qs.total_elapsed_time / qs.execution_count / 1000 END AS [avg_elapsed_time_ms],
    CASE WHEN qs.execution_count > 0
        THEN qs.total_logical_reads / qs.execution_count END AS [avg_logical_reads],
    CASE WHEN qs.execution_count > 0
        THEN qs.total_rows / qs.execution_count END AS [avg_rows]
FROM sys.dm_exec_query_stats qs
CROSS APPLY sys.dm_exec_sql_text(qs.sql_handle) st
WHERE st.text LIKE @query_pattern
ORDER BY qs.last_execution_time DESC
"""

ParamValue = Union[str, int, float, bool, None]


def query_pattern(query: str) -> str:
    """LIKE pattern matching cached statements that start like ``query``."""
    return f"%{query[:PATTERN_PREFIX_CHARS]}%"


def _failure_text(exc: Exception) -> str:
    return exc.message if isinstance(exc, McpError) else sanitize_exception(exc)


async def handler(
    query: str,
    params: Optional[Dict[str, ParamValue]] = None,
    include_execution_plan: bool = True,
) -> str:
    """Return the estimated plan and plan-cache statistics for ``query``.

    Data Access:
        The plan is requested with SHOWPLAN_XML, so the statement is compiled but
        never run. Statistics come from sys.dm_exec_query_stats.

    Failure Modes:
        - Validation: statement rejected by the read-only policy.
        - Plan or statistics lookups that fail are reported as warnings.

    Returns:
        JSON envelope with estimated_plan, statistics and warnings when present.
    """
    start_time = time.monotonic()

    if err := require_non_empty(query, "query", TOOL_NAME):
        return err
    if err := validate_max_length(query, "query", TOOL_NAME):
        return err
    if err := validate_mapping(params, "params", TOOL_NAME):
        return err

    result: Dict[str, Any] = {}
    warnings: List[str] = []

    try:
        executor = Database.get_executor()
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    if include_execution_plan:
        try:
            plan_xml = await executor.explain_query(query, params)
        except QueryValidationError as exc:
            return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))
        except Exception as exc:
            logger.warning("Execution plan unavailable", extra={"error": _failure_text(exc)})
            warnings.append(f"Could not get execution plan: {_failure_text(exc)}")
        else:
            if plan_xml:
                result["estimated_plan"] = parse_plan_xml(plan_xml)

    try:
        stats = await executor.execute_query(
            QUERY_STATS_SQL, {"query_pattern": query_pattern(query)}, row_limit=1
        )
    except Exception as exc:
        logger.warning("Query statistics unavailable", extra={"error": _failure_text(exc)})
        warnings.append("Could not retrieve query statistics")
    else:
        if stats.rows:
            result["statistics"] = stats.rows[0]
        else:
            warnings.append("No cached statistics found for this query")

    if warnings:
        result["warnings"] = warnings

    return tool_success_response(result, start_time, read_only=executor.read_only)
