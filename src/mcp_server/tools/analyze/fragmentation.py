"""MCP tool: analyze_fragmentation - Index fragmentation and maintenance advice."""

import time
from typing import Optional

from dal.database import Database
from dal.mssql.maintenance import fragmentation_recommendation, index_maintenance_statement
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_range

TOOL_NAME = "analyze_fragmentation"
TOOL_DESCRIPTION = (
    "Analyze index fragmentation levels and get maintenance recommendations "
    "(REBUILD or REORGANIZE)."
)

ROW_LIMIT = 100
RECOMMENDATION_TEXT = {
    "OK": "OK - No action needed",
    "REORGANIZE": "REORGANIZE recommended",
    "REBUILD": "REBUILD recommended",
}
THRESHOLDS = {"rebuild": "30% or higher", "reorganize": "10% to 30%", "ok": "Below 10%"}
NOTE = (
    "REBUILD operations are more thorough but can be resource-intensive. REORGANIZE is "
    "less intrusive but may not fully defragment."
)

_FRAGMENTATION_SQL = """
SELECT
    OBJECT_SCHEMA_NAME(ips.object_id) AS [schema],
    OBJECT_NAME(ips.object_id) AS [table],
    i.name AS [index_name],
    i.type_desc AS [index_type],
    ips.partition_number AS [partition],
    ips.index_type_desc AS [index_type_desc],
    ips.alloc_unit_type_desc AS [allocation_type],
    CAST(ips.avg_fragmentation_in_percent AS DECIMAL(5,2)) AS [fragmentation_percent],
    ips.fragment_count AS [fragment_count],
    ips.avg_fragment_size_in_pages AS [avg_fragment_size_pages],
    ips.page_count AS [page_count],
    CAST(ips.page_count * 8.0 / 1024 AS DECIMAL(18,2)) AS [size_mb],
    ips.avg_page_space_used_in_percent AS [avg_page_space_used_percent],
    ips.record_count AS [record_count],
    ips.ghost_record_count AS [ghost_record_count],
    ips.forwarded_record_count AS [forwarded_record_count]
FROM sys.dm_db_index_physical_stats(DB_ID(), NULL, NULL, NULL, 'LIMITED') ips
INNER JOIN sys.indexes i ON ips.object_id = i.object_id AND ips.index_id = i.index_id
WHERE ips.avg_fragmentation_in_percent >= @min_fragmentation
    AND ips.page_count >= @min_page_count
    AND ips.index_id > 0
    AND OBJECTPROPERTY(ips.object_id, 'IsUserTable') = 1{table_filter}
ORDER BY ips.avg_fragmentation_in_percent DESC
"""


def build_query(table: Optional[str]) -> str:
    table_filter = "\n    AND OBJECT_NAME(ips.object_id) = @table" if table else ""
    return _FRAGMENTATION_SQL.format(table_filter=table_filter)


async def handler(
    table: Optional[str] = None, min_fragmentation: float = 10, min_page_count: int = 1000
) -> str:
    """Return fragmented indexes with REBUILD/REORGANIZE suggestions.

    Args:
        table: Optional table name filter.
        min_fragmentation: Minimum fragmentation percentage (0-100).
        min_page_count: Ignore indexes smaller than this many pages.
    """
    start_time = time.monotonic()

    if err := validate_range(
        min_fragmentation, "min_fragmentation", TOOL_NAME, min_val=0, max_val=100
    ):
        return err
    if err := validate_range(min_page_count, "min_page_count", TOOL_NAME, min_val=1):
        return err

    params = {"min_fragmentation": min_fragmentation, "min_page_count": min_page_count}
    if table:
        params["table"] = table

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(build_query(table), params, row_limit=ROW_LIMIT)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    summary = {"needs_rebuild": 0, "needs_reorganize": 0, "ok": 0}
    fragmentation = []
    for row in result.rows:
        action = fragmentation_recommendation(row.get("fragmentation_percent"))
        if action == "REBUILD":
            summary["needs_rebuild"] += 1
        elif action == "REORGANIZE":
            summary["needs_reorganize"] += 1
        else:
            summary["ok"] += 1
        fragmentation.append(
            {
                **row,
                "recommendation": RECOMMENDATION_TEXT[action],
                "maintenance_statement": index_maintenance_statement(
                    row["schema"], row["table"], row["index_name"], row.get("fragmentation_percent")
                ),
            }
        )

    return tool_success_response(
        {
            "fragmentation": fragmentation,
            "count": len(fragmentation),
            "summary": summary,
            "thresholds": THRESHOLDS,
            "note": NOTE,
        },
        start_time,
    )
