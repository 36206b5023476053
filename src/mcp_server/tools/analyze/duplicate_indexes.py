"""MCP tool: analyze_duplicate_indexes - Duplicate and overlapping indexes."""

import time
from typing import Optional

from dal.database import Database
from dal.mssql.maintenance import duplicate_index_recommendation
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception

TOOL_NAME = "analyze_duplicate_indexes"
TOOL_DESCRIPTION = "Find duplicate or overlapping indexes that could be consolidated or removed."

ROW_LIMIT = 100
EXACT_DUPLICATE = "EXACT DUPLICATE"
NOTE = (
    "Duplicate indexes waste space and slow down writes. Consider consolidating or "
    "removing redundant indexes."
)

_DUPLICATES_SQL = """
WITH IndexColumns AS (
    SELECT
        i.object_id,
        i.index_id,
        i.name AS index_name,
        i.type_desc,
        i.is_unique,
        i.is_primary_key,
        (
            SELECT STRING_AGG(c.name, ',') WITHIN GROUP (ORDER BY ic.key_ordinal)
            FROM sys.index_columns ic
            INNER JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
            WHERE ic.object_id = i.object_id AND ic.index_id = i.index_id
                AND ic.is_included_column = 0
        ) AS key_columns,
        (
            SELECT STRING_AGG(c.name, ',') WITHIN GROUP (ORDER BY c.name)
            FROM sys.index_columns ic
            INNER JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
            WHERE ic.object_id = i.object_id AND ic.index_id = i.index_id
                AND ic.is_included_column = 1
        ) AS included_columns
    FROM sys.indexes i
    WHERE i.type > 0
        AND OBJECTPROPERTY(i.object_id, 'IsUserTable') = 1
)
SELECT
    OBJECT_SCHEMA_NAME(ic1.object_id) AS [schema],
    OBJECT_NAME(ic1.object_id) AS [table],
    ic1.index_name AS [index1_name],
    ic1.type_desc AS [index1_type],
    ic1.key_columns AS [index1_key_columns],
    ic1.included_columns AS [index1_included_columns],
    ic2.index_name AS [index2_name],
    ic2.type_desc AS [index2_type],
    ic2.key_columns AS [index2_key_columns],
    ic2.included_columns AS [index2_included_columns],
    CASE
        WHEN ic1.key_columns = ic2.key_columns
            AND ISNULL(ic1.included_columns, '') = ISNULL(ic2.included_columns, '')
            THEN 'EXACT DUPLICATE'
        WHEN ic1.key_columns = ic2.key_columns
            THEN 'SAME KEY COLUMNS'
        WHEN ic2.key_columns LIKE ic1.key_columns + ',%'
            THEN 'SUBSET (index1 is prefix of index2)'
        WHEN ic1.key_columns LIKE ic2.key_columns + ',%'
            THEN 'SUBSET (index2 is prefix of index1)'
        ELSE 'OVERLAPPING'
    END AS [duplicate_type],
    ps1.used_page_count * 8.0 / 1024 AS [index1_size_mb],
    ps2.used_page_count * 8.0 / 1024 AS [index2_size_mb]
FROM IndexColumns ic1
INNER JOIN IndexColumns ic2 ON ic1.object_id = ic2.object_id
    AND ic1.index_id < ic2.index_id
    AND (
        ic1.key_columns = ic2.key_columns
        OR ic2.key_columns LIKE ic1.key_columns + ',%'
        OR ic1.key_columns LIKE ic2.key_columns + ',%'
    )
INNER JOIN sys.dm_db_partition_stats ps1
    ON ic1.object_id = ps1.object_id AND ic1.index_id = ps1.index_id
INNER JOIN sys.dm_db_partition_stats ps2
    ON ic2.object_id = ps2.object_id AND ic2.index_id = ps2.index_id
WHERE 1=1{table_filter}
ORDER BY OBJECT_SCHEMA_NAME(ic1.object_id), OBJECT_NAME(ic1.object_id), ic1.index_name
"""


def build_query(table: Optional[str]) -> str:
    table_filter = " AND OBJECT_NAME(ic1.object_id) = @table" if table else ""
    return _DUPLICATES_SQL.format(table_filter=table_filter)


async def handler(table: Optional[str] = None) -> str:
    """Return index pairs whose key columns match or prefix one another."""
    start_time = time.monotonic()

    params = {"table": table} if table else {}
    try:
        executor = Database.get_executor()
        result = await executor.execute_query(build_query(table), params, row_limit=ROW_LIMIT)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    duplicates = [
        {
            **row,
            "recommendation": duplicate_index_recommendation(
                row["duplicate_type"], row["index2_name"]
            ),
        }
        for row in result.rows
    ]
    # Dropping one of an exact pair frees the smaller of the two.
    savings = sum(
        min(float(row.get("index1_size_mb") or 0), float(row.get("index2_size_mb") or 0))
        for row in duplicates
        if row["duplicate_type"] == EXACT_DUPLICATE
    )
    return tool_success_response(
        {
            "duplicate_indexes": duplicates,
            "count": len(duplicates),
            "potential_space_savings_mb": round(savings, 2),
            "note": NOTE,
        },
        start_time,
    )
