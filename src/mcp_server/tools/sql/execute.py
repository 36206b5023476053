"""MCP tool: sql_execute - Run a parameterized SQL statement."""

import time
from typing import Dict, Optional, Union

from dal.database import Database
from dal.util.row_limits import clamp_row_limit
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import (
    require_non_empty,
    validate_mapping,
    validate_max_length,
    validate_range,
)

TOOL_NAME = "sql_execute"
TOOL_DESCRIPTION = (
    "Execute a SQL query against SQL Server. Use @name placeholders with the params "
    "object for values. In read-only mode only SELECT statements are accepted."
)

MAX_ROWS_LIMIT = 5000

ParamValue = Union[str, int, float, bool, None]


async def handler(
    query: str,
    params: Optional[Dict[str, ParamValue]] = None,
    max_rows: int = 100,
) -> str:
    """Execute a SQL query and return its rows.

    Data Access:
        Read-only when the server runs with READONLY=true; the query is checked
        by the read-only validator before it reaches the pool.

    Failure Modes:
        - Invalid Request: missing or oversized query, bad params or max_rows out of range.
        - Validation: statement rejected by the read-only policy.
        - Timeout / Connectivity / Database Error: reported from the driver.

    Args:
        query: SQL text with optional @name placeholders.
        params: Values for the placeholders.
        max_rows: Rows to return (1-5000, also capped by MAX_ROWS).

    Returns:
        JSON envelope with rows, row_count, fields, duration_ms and truncated.
    """
    start_time = time.monotonic()

    if err := require_non_empty(query, "query", TOOL_NAME):
        return err
    if err := validate_max_length(query, "query", TOOL_NAME):
        return err
    if err := validate_mapping(params, "params", TOOL_NAME):
        return err
    if err := validate_range(max_rows, "max_rows", TOOL_NAME, min_val=1, max_val=MAX_ROWS_LIMIT):
        return err

    try:
        executor = Database.get_executor()
        row_limit = clamp_row_limit(max_rows, Database.get_settings().max_rows)
        result = await executor.execute_query(query, params, row_limit=row_limit)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "rows": result.rows,
            "row_count": len(result.rows),
            "fields": result.fields,
            "duration_ms": result.duration_ms,
            "truncated": result.truncated,
        },
        start_time,
        read_only=executor.read_only,
        returned_count=len(result.rows),
        total_count=result.row_count_total,
        limit_applied=row_limit,
    )
