"""MCP tool: schema_list_columns - Search columns across tables."""

import time
from typing import Dict, Optional

from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception

TOOL_NAME = "schema_list_columns"
TOOL_DESCRIPTION = (
    "Search for columns across all tables with optional filtering by name pattern, "
    "data type, table, and schema."
)

ROW_LIMIT = 1000

_BASE_SQL = """
SELECT
    s.name AS [schema],
    t.name AS [table],
    c.name AS [column],
    ty.name AS [data_type],
    c.max_length AS [max_length],
    c.precision AS [precision],
    c.scale AS [scale],
    c.is_nullable AS [is_nullable],
    c.is_identity AS [is_identity],
    ep.value AS [description]
FROM sys.columns c
INNER JOIN sys.types ty ON c.user_type_id = ty.user_type_id
INNER JOIN sys.tables t ON c.object_id = t.object_id
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
LEFT JOIN sys.extended_properties ep
    ON ep.major_id = c.object_id
    AND ep.minor_id = c.column_id
    AND ep.name = 'MS_Description'
WHERE 1=1"""

_FILTERS = (
    ("pattern", " AND c.name LIKE @pattern"),
    ("data_type", " AND ty.name = @data_type"),
    ("table", " AND t.name = @table"),
    ("schema", " AND s.name = @schema"),
)


def build_query(params: Dict[str, str]) -> str:
    """Return the column search query for the supplied filters."""
    clauses = "".join(clause for name, clause in _FILTERS if name in params)
    return f"{_BASE_SQL}{clauses}\nORDER BY s.name, t.name, c.column_id"


async def handler(
    pattern: Optional[str] = None,
    data_type: Optional[str] = None,
    table: Optional[str] = None,
    schema: Optional[str] = None,
) -> str:
    """Search columns by name pattern, data type, table and schema."""
    start_time = time.monotonic()

    filters = {"pattern": pattern, "data_type": data_type, "table": table, "schema": schema}
    params = {name: value for name, value in filters.items() if value}

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(build_query(params), params, row_limit=ROW_LIMIT)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {"columns": result.rows, "count": len(result.rows)},
        start_time,
        returned_count=len(result.rows),
        total_count=result.row_count_total,
        limit_applied=ROW_LIMIT,
    )
