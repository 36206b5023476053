"""MCP tool: analyze_suggest_indexes - Missing-index suggestions."""

import time
from typing import Optional

from dal.database import Database
from dal.mssql.maintenance import create_index_statement, suggestion_priority
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_range

TOOL_NAME = "analyze_suggest_indexes"
TOOL_DESCRIPTION = (
    "Suggest missing indexes based on query analyzer recommendations. Returns DDL "
    "statements to create suggested indexes."
)

MAX_TOP = 50
NOTE = (
    "These suggestions are based on the query optimizer analysis. Always test indexes "
    "in a non-production environment first."
)

_SUGGESTIONS_SQL = """
SELECT TOP (@top)
    OBJECT_SCHEMA_NAME(mid.object_id) AS [schema],
    OBJECT_NAME(mid.object_id) AS [table],
    mid.equality_columns AS [equality_columns],
    mid.inequality_columns AS [inequality_columns],
    mid.included_columns AS [included_columns],
    migs.unique_compiles AS [unique_compiles],
    migs.user_seeks AS [user_seeks],
    migs.user_scans AS [user_scans],
    migs.avg_total_user_cost AS [avg_total_user_cost],
    migs.avg_user_impact AS [avg_user_impact],
    CAST(migs.avg_total_user_cost * migs.avg_user_impact * (migs.user_seeks + migs.user_scans)
        AS DECIMAL(18,2)) AS [improvement_measure]
FROM sys.dm_db_missing_index_details mid
INNER JOIN sys.dm_db_missing_index_groups mig ON mid.index_handle = mig.index_handle
INNER JOIN sys.dm_db_missing_index_group_stats migs ON mig.index_group_handle = migs.group_handle
WHERE mid.database_id = DB_ID()
    AND migs.avg_user_impact >= @min_impact{table_filter}
ORDER BY migs.avg_total_user_cost * migs.avg_user_impact * (migs.user_seeks + migs.user_scans) DESC
"""


def build_query(table: Optional[str]) -> str:
    table_filter = "\n    AND OBJECT_NAME(mid.object_id) = @table" if table else ""
    return _SUGGESTIONS_SQL.format(table_filter=table_filter)


async def handler(table: Optional[str] = None, min_impact: float = 10, top: int = 20) -> str:
    """Return the optimizer's missing-index suggestions, highest benefit first.

    Args:
        table: Optional table name filter.
        min_impact: Minimum average user impact percentage (0-100).
        top: Maximum number of suggestions (1-50).
    """
    start_time = time.monotonic()

    if err := validate_range(min_impact, "min_impact", TOOL_NAME, min_val=0, max_val=100):
        return err
    if err := validate_range(top, "top", TOOL_NAME, min_val=1, max_val=MAX_TOP):
        return err
    top = int(top)

    params = {"top": top, "min_impact": min_impact}
    if table:
        params["table"] = table

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(build_query(table), params, row_limit=top)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    suggestions = [
        {
            **row,
            "create_statement": create_index_statement(
                row["schema"],
                row["table"],
                row.get("equality_columns"),
                row.get("inequality_columns"),
                row.get("included_columns"),
            ),
            "recommendation": suggestion_priority(row.get("improvement_measure")),
        }
        for row in result.rows
    ]
    return tool_success_response(
        {"suggestions": suggestions, "count": len(suggestions), "note": NOTE},
        start_time,
    )
