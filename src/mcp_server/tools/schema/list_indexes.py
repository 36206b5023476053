"""MCP tool: schema_list_indexes - List indexes with usage statistics."""

import time
from typing import Optional

from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception

TOOL_NAME = "schema_list_indexes"
TOOL_DESCRIPTION = (
    "List indexes in the database with usage statistics, including seeks, scans, "
    "lookups, and updates."
)

ROW_LIMIT = 1000

_BASE_SQL = """
SELECT
    s.name AS [schema],
    t.name AS [table],
    i.name AS [index_name],
    i.type_desc AS [type],
    i.is_unique AS [is_unique],
    i.is_primary_key AS [is_primary_key],
    i.is_disabled AS [is_disabled],
    STRING_AGG(c.name, ', ') WITHIN GROUP (ORDER BY ic.key_ordinal) AS [columns],
    STRING_AGG(
        CASE WHEN ic.is_included_column = 1 THEN c.name END,
        ', '
    ) WITHIN GROUP (ORDER BY c.name) AS [included_columns],
    ps.row_count AS [row_count],
    CAST(ROUND(ps.used_page_count * 8.0 / 1024, 2) AS DECIMAL(18,2)) AS [size_mb],
    ius.user_seeks AS [seeks],
    ius.user_scans AS [scans],
    ius.user_lookups AS [lookups],
    ius.user_updates AS [updates],
    ius.last_user_seek AS [last_seek],
    ius.last_user_scan AS [last_scan]
FROM sys.indexes i
INNER JOIN sys.tables t ON i.object_id = t.object_id
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
INNER JOIN sys.index_columns ic ON i.object_id = ic.object_id AND i.index_id = ic.index_id
INNER JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
LEFT JOIN sys.dm_db_partition_stats ps
    ON i.object_id = ps.object_id AND i.index_id = ps.index_id
LEFT JOIN sys.dm_db_index_usage_stats ius
    ON i.object_id = ius.object_id AND i.index_id = ius.index_id AND ius.database_id = DB_ID()
WHERE i.name IS NOT NULL"""

_GROUP_BY = """
GROUP BY
    s.name, t.name, i.name, i.type_desc, i.is_unique, i.is_primary_key, i.is_disabled,
    ps.row_count, ps.used_page_count,
    ius.user_seeks, ius.user_scans, ius.user_lookups, ius.user_updates,
    ius.last_user_seek, ius.last_user_scan
ORDER BY s.name, t.name, i.name
"""


def build_query(table: Optional[str], schema: Optional[str]) -> str:
    sql = _BASE_SQL
    if table:
        sql += " AND t.name = @table"
    if schema:
        sql += " AND s.name = @schema"
    return sql + _GROUP_BY


async def handler(table: Optional[str] = None, schema: Optional[str] = None) -> str:
    """List indexes, optionally for one table or schema."""
    start_time = time.monotonic()

    params = {}
    if table:
        params["table"] = table
    if schema:
        params["schema"] = schema

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(
            build_query(table, schema), params, row_limit=ROW_LIMIT
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {"indexes": result.rows, "count": len(result.rows)},
        start_time,
        returned_count=len(result.rows),
        total_count=result.row_count_total,
        limit_applied=ROW_LIMIT,
    )
