"""MCP tool: schema_list_tables - List tables and views in the database."""

import time
from typing import Dict, List, Optional

from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_choice

TOOL_NAME = "schema_list_tables"
TOOL_DESCRIPTION = (
    "List all tables and views in the database with optional filtering by schema, "
    "type, and name pattern."
)

OBJECT_TYPES = ("ALL", "TABLE", "VIEW")
ROW_LIMIT = 1000

_TABLES_SQL = """
SELECT
    s.name AS [schema],
    t.name AS [name],
    'TABLE' AS [type],
    p.rows AS [row_count],
    CAST(ROUND(SUM(a.total_pages) * 8.0 / 1024, 2) AS DECIMAL(18,2)) AS [size_mb],
    t.create_date AS [created_at],
    t.modify_date AS [modified_at]
FROM sys.tables t
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
LEFT JOIN sys.partitions p ON t.object_id = p.object_id AND p.index_id IN (0, 1)
LEFT JOIN sys.allocation_units a ON p.partition_id = a.container_id
WHERE 1=1{filters}
GROUP BY s.name, t.name, p.rows, t.create_date, t.modify_date
"""

_VIEWS_SQL = """
SELECT
    s.name AS [schema],
    v.name AS [name],
    'VIEW' AS [type],
    NULL AS [row_count],
    NULL AS [size_mb],
    v.create_date AS [created_at],
    v.modify_date AS [modified_at]
FROM sys.views v
INNER JOIN sys.schemas s ON v.schema_id = s.schema_id
WHERE 1=1{filters}
"""

_ORDER_BY = "ORDER BY [schema], [name]"


def _filters(alias: str, schema: Optional[str], pattern: Optional[str]) -> str:
    clauses = []
    if schema:
        clauses.append(" AND s.name = @schema")
    if pattern:
        clauses.append(f" AND {alias}.name LIKE @pattern")
    return "".join(clauses)


def build_query(object_type: str, schema: Optional[str], pattern: Optional[str]) -> str:
    """Return the catalog query for the requested object type."""
    parts: List[str] = []
    if object_type in ("ALL", "TABLE"):
        parts.append(_TABLES_SQL.format(filters=_filters("t", schema, pattern)))
    if object_type in ("ALL", "VIEW"):
        parts.append(_VIEWS_SQL.format(filters=_filters("v", schema, pattern)))
    return "UNION ALL".join(parts) + _ORDER_BY


async def handler(
    schema: Optional[str] = None,
    type: str = "ALL",
    pattern: Optional[str] = None,
) -> str:
    """List tables and views.

    Args:
        schema: Optional schema name filter (e.g. "dbo").
        type: TABLE, VIEW, or ALL.
        pattern: Optional LIKE pattern for the object name (e.g. "%user%").

    Returns:
        JSON envelope with tables and count.
    """
    start_time = time.monotonic()

    if err := validate_choice(type, "type", TOOL_NAME, OBJECT_TYPES):
        return err

    params: Dict[str, str] = {}
    if schema:
        params["schema"] = schema
    if pattern:
        params["pattern"] = pattern

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(
            build_query(type, schema, pattern), params, row_limit=ROW_LIMIT
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {"tables": result.rows, "count": len(result.rows)},
        start_time,
        returned_count=len(result.rows),
        total_count=result.row_count_total,
        limit_applied=ROW_LIMIT,
    )
