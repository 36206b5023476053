"""MCP tool: analyze_unused_indexes - Indexes with no reads since restart."""

import time
from typing import Optional

from dal.database import Database
from dal.mssql.maintenance import drop_index_statement
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_range

TOOL_NAME = "analyze_unused_indexes"
TOOL_DESCRIPTION = (
    "Find indexes that are not being used and could be dropped to save space and "
    "improve write performance."
)

ROW_LIMIT = 100
NOTE = (
    "These indexes have not been used for seeks, scans, or lookups. Consider dropping "
    "them to save space and improve write performance. Always verify in a "
    "non-production environment first."
)

_UNUSED_SQL = """
SELECT
    OBJECT_SCHEMA_NAME(i.object_id) AS [schema],
    OBJECT_NAME(i.object_id) AS [table],
    i.name AS [index_name],
    i.type_desc AS [type],
    i.is_unique AS [is_unique],
    i.is_primary_key AS [is_primary_key],
    ps.row_count AS [row_count],
    CAST(ROUND(ps.used_page_count * 8.0 / 1024, 2) AS DECIMAL(18,2)) AS [size_mb],
    ISNULL(ius.user_seeks, 0) AS [seeks],
    ISNULL(ius.user_scans, 0) AS [scans],
    ISNULL(ius.user_lookups, 0) AS [lookups],
    ISNULL(ius.user_updates, 0) AS [updates],
    ius.last_user_seek AS [last_seek],
    ius.last_user_scan AS [last_scan],
    ius.last_user_lookup AS [last_lookup],
    STATS_DATE(i.object_id, i.index_id) AS [stats_date],
    DATEDIFF(DAY, ISNULL(
        CASE
            WHEN ius.last_user_seek IS NOT NULL AND ius.last_user_scan IS NOT NULL
                THEN CASE WHEN ius.last_user_seek > ius.last_user_scan
                    THEN ius.last_user_seek ELSE ius.last_user_scan END
            WHEN ius.last_user_seek IS NOT NULL THEN ius.last_user_seek
            WHEN ius.last_user_scan IS NOT NULL THEN ius.last_user_scan
            ELSE DATEADD(DAY, -365, GETDATE())
        END,
        DATEADD(DAY, -365, GETDATE())
    ), GETDATE()) AS [days_since_last_use]
FROM sys.indexes i
INNER JOIN sys.dm_db_partition_stats ps
    ON i.object_id = ps.object_id AND i.index_id = ps.index_id
LEFT JOIN sys.dm_db_index_usage_stats ius
    ON i.object_id = ius.object_id AND i.index_id = ius.index_id AND ius.database_id = DB_ID()
WHERE i.type > 0
    AND i.is_primary_key = 0
    AND i.is_unique_constraint = 0
    AND OBJECTPROPERTY(i.object_id, 'IsUserTable') = 1
    AND ISNULL(ius.user_seeks, 0) + ISNULL(ius.user_scans, 0) + ISNULL(ius.user_lookups, 0) = 0
    AND ps.used_page_count * 8.0 / 1024 >= @min_size_mb{table_filter}
ORDER BY ps.used_page_count DESC
"""


def build_query(table: Optional[str]) -> str:
    table_filter = "\n    AND OBJECT_NAME(i.object_id) = @table" if table else ""
    return _UNUSED_SQL.format(table_filter=table_filter)


async def handler(
    table: Optional[str] = None, min_size_mb: float = 1, min_age_days: int = 30
) -> str:
    """Return nonclustered indexes without reads, with DROP INDEX suggestions.

    Usage counters reset when the instance restarts; an index with no recorded
    use is reported as unused for 365 days.
    """
    start_time = time.monotonic()

    if err := validate_range(min_size_mb, "min_size_mb", TOOL_NAME, min_val=0):
        return err
    if err := validate_range(min_age_days, "min_age_days", TOOL_NAME, min_val=0):
        return err

    params = {"min_size_mb": min_size_mb}
    if table:
        params["table"] = table

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(build_query(table), params, row_limit=ROW_LIMIT)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    unused = [
        {
            **row,
            "drop_statement": drop_index_statement(row["schema"], row["table"], row["index_name"]),
        }
        for row in result.rows
        if (row.get("days_since_last_use") or 0) >= min_age_days
    ]
    savings = sum(float(row.get("size_mb") or 0) for row in unused)
    return tool_success_response(
        {
            "unused_indexes": unused,
            "count": len(unused),
            "potential_space_savings_mb": round(savings, 2),
            "note": NOTE,
        },
        start_time,
    )
