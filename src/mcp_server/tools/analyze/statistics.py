"""MCP tool: analyze_statistics - Stale and outdated statistics."""

import time
from typing import Optional

from dal.database import Database
from dal.mssql.maintenance import statistics_status, update_statistics_statement
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_range

TOOL_NAME = "analyze_statistics"
TOOL_DESCRIPTION = (
    "Analyze table statistics to identify stale or outdated statistics that may affect "
    "query performance."
)

ROW_LIMIT = 200
THRESHOLDS = {
    "stale": "More than 20% rows modified",
    "old": "Last updated more than 30 days ago",
}
NOTE = (
    "Stale statistics can cause the query optimizer to choose suboptimal execution "
    "plans. Consider updating statistics regularly."
)

_STATISTICS_SQL = """
SELECT
    OBJECT_SCHEMA_NAME(s.object_id) AS [schema],
    OBJECT_NAME(s.object_id) AS [table],
    s.name AS [statistics_name],
    s.auto_created AS [auto_created],
    s.user_created AS [user_created],
    s.no_recompute AS [no_recompute],
    s.has_filter AS [has_filter],
    s.filter_definition AS [filter_definition],
    sp.last_updated AS [last_updated],
    DATEDIFF(DAY, sp.last_updated, GETDATE()) AS [days_since_update],
    sp.rows AS [total_rows],
    sp.rows_sampled AS [rows_sampled],
    sp.modification_counter AS [modification_counter],
    CAST(100.0 * sp.modification_counter / NULLIF(sp.rows, 0) AS DECIMAL(18,2))
        AS [percent_modified],
    sp.steps AS [histogram_steps],
    sp.unfiltered_rows AS [unfiltered_rows],
    COL_NAME(s.object_id, sc.column_id) AS [first_column],
    (
        SELECT STRING_AGG(COL_NAME(s.object_id, sc2.column_id), ', ')
        FROM sys.stats_columns sc2
        WHERE sc2.object_id = s.object_id AND sc2.stats_id = s.stats_id
    ) AS [all_columns]
FROM sys.stats s
CROSS APPLY sys.dm_db_stats_properties(s.object_id, s.stats_id) sp
LEFT JOIN sys.stats_columns sc
    ON s.object_id = sc.object_id AND s.stats_id = sc.stats_id AND sc.stats_column_id = 1
WHERE OBJECTPROPERTY(s.object_id, 'IsUserTable') = 1{filters}
ORDER BY
    CASE
        WHEN sp.rows = 0 THEN 0
        ELSE 100.0 * sp.modification_counter / NULLIF(sp.rows, 0)
    END DESC,
    sp.last_updated ASC
"""


def build_query(table: Optional[str], min_rows_changed: float) -> str:
    filters = ""
    if table:
        filters += "\n    AND OBJECT_NAME(s.object_id) = @table"
    if min_rows_changed > 0:
        filters += (
            "\n    AND (sp.rows = 0"
            " OR 100.0 * sp.modification_counter / NULLIF(sp.rows, 0) >= @min_rows_changed)"
        )
    return _STATISTICS_SQL.format(filters=filters)


async def handler(table: Optional[str] = None, min_rows_changed: float = 10) -> str:
    """Return statistics objects ranked by the share of rows modified."""
    start_time = time.monotonic()

    if err := validate_range(
        min_rows_changed, "min_rows_changed", TOOL_NAME, min_val=0, max_val=100
    ):
        return err

    params = {}
    if table:
        params["table"] = table
    if min_rows_changed > 0:
        params["min_rows_changed"] = min_rows_changed

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(
            build_query(table, min_rows_changed), params, row_limit=ROW_LIMIT
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    summary = {"stale": 0, "old": 0, "ok": 0, "empty": 0}
    statistics = []
    for row in result.rows:
        status = statistics_status(
            row.get("total_rows"), row.get("percent_modified"), row.get("days_since_update")
        )
        if status.startswith("STALE"):
            summary["stale"] += 1
        elif status.startswith("OLD"):
            summary["old"] += 1
        elif status == "EMPTY TABLE":
            summary["empty"] += 1
        else:
            summary["ok"] += 1
        statistics.append(
            {
                **row,
                "status": status,
                "update_statement": update_statistics_statement(
                    row["schema"],
                    row["table"],
                    row["statistics_name"],
                    row.get("percent_modified"),
                ),
            }
        )

    return tool_success_response(
        {
            "statistics": statistics,
            "count": len(statistics),
            "summary": summary,
            "thresholds": THRESHOLDS,
            "note": NOTE,
        },
        start_time,
    )
