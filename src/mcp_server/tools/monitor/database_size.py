"""MCP tool: monitor_database_size - Report database and file sizes."""

import asyncio
import time

from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception

TOOL_NAME = "monitor_database_size"
TOOL_DESCRIPTION = (
    "Monitor database size including file usage, space allocation, and largest tables."
)

SIZE_SQL = """
SELECT
    DB_NAME() AS [database],
    SUM(CASE WHEN type = 0 THEN size END) * 8.0 / 1024 AS [data_size_mb],
    SUM(CASE WHEN type = 1 THEN size END) * 8.0 / 1024 AS [log_size_mb],
    SUM(size) * 8.0 / 1024 AS [total_size_mb]
FROM sys.database_files
"""

FILES_SQL = """
SELECT
    f.name AS [file_name],
    f.type_desc AS [file_type],
    f.physical_name AS [physical_path],
    CAST(f.size * 8.0 / 1024 AS DECIMAL(18,2)) AS [size_mb],
    CAST(FILEPROPERTY(f.name, 'SpaceUsed') * 8.0 / 1024 AS DECIMAL(18,2)) AS [used_mb],
    CAST((f.size - FILEPROPERTY(f.name, 'SpaceUsed')) * 8.0 / 1024 AS DECIMAL(18,2)) AS [free_mb],
    CAST(100.0 * FILEPROPERTY(f.name, 'SpaceUsed') / NULLIF(f.size, 0) AS DECIMAL(5,2))
        AS [used_percent],
    CASE f.max_size
        WHEN -1 THEN 'UNLIMITED'
        WHEN 0 THEN 'NO GROWTH'
        ELSE CAST(CAST(f.max_size * 8.0 / 1024 AS DECIMAL(18,2)) AS VARCHAR(20)) + ' MB'
    END AS [max_size],
    CASE f.growth
        WHEN 0 THEN 'NONE'
        ELSE CASE f.is_percent_growth
            WHEN 1 THEN CAST(f.growth AS VARCHAR(10)) + '%'
            ELSE CAST(CAST(f.growth * 8.0 / 1024 AS DECIMAL(18,2)) AS VARCHAR(20)) + ' MB'
        END
    END AS [growth_setting]
FROM sys.database_files f
"""

LARGEST_TABLES_SQL = """
SELECT TOP 20
    s.name AS [schema],
    t.name AS [table],
    p.rows AS [row_count],
    CAST(ROUND(SUM(a.total_pages) * 8.0 / 1024, 2) AS DECIMAL(18,2)) AS [total_size_mb],
    CAST(ROUND(SUM(a.used_pages) * 8.0 / 1024, 2) AS DECIMAL(18,2)) AS [used_size_mb],
    CAST(ROUND((SUM(a.total_pages) - SUM(a.used_pages)) * 8.0 / 1024, 2) AS DECIMAL(18,2))
        AS [unused_size_mb]
FROM sys.tables t
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
INNER JOIN sys.indexes i ON t.object_id = i.object_id
INNER JOIN sys.partitions p ON i.object_id = p.object_id AND i.index_id = p.index_id
INNER JOIN sys.allocation_units a ON p.partition_id = a.container_id
WHERE t.is_ms_shipped = 0
GROUP BY s.name, t.name, p.rows
ORDER BY SUM(a.total_pages) DESC
"""


async def handler() -> str:
    """Report the database size, its files, and the twenty largest tables."""
    start_time = time.monotonic()

    try:
        executor = Database.get_executor()
        size, files, tables = await asyncio.gather(
            executor.execute_query(SIZE_SQL, row_limit=1),
            executor.execute_query(FILES_SQL, row_limit=100),
            executor.execute_query(LARGEST_TABLES_SQL, row_limit=20),
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "summary": size.rows[0] if size.rows else None,
            "files": files.rows,
            "largest_tables": tables.rows,
        },
        start_time,
    )
