"""MCP tool: schema_describe_table - Describe a table's structure."""

import asyncio
import time
from typing import Optional

from dal.database import Database
from dal.mssql.statements import DEFAULT_SCHEMA
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import require_non_empty

TOOL_NAME = "schema_describe_table"
TOOL_DESCRIPTION = (
    "Get detailed information about a table including columns, primary key, "
    "foreign keys, indexes, and statistics."
)

COLUMNS_SQL = """
SELECT
    c.name AS [name],
    t.name AS [data_type],
    c.max_length AS [max_length],
    c.precision AS [precision],
    c.scale AS [scale],
    c.is_nullable AS [is_nullable],
    c.is_identity AS [is_identity],
    c.is_computed AS [is_computed],
    OBJECT_DEFINITION(c.default_object_id) AS [default_value],
    ep.value AS [description]
FROM sys.columns c
INNER JOIN sys.types t ON c.user_type_id = t.user_type_id
INNER JOIN sys.tables tbl ON c.object_id = tbl.object_id
INNER JOIN sys.schemas s ON tbl.schema_id = s.schema_id
LEFT JOIN sys.extended_properties ep
    ON ep.major_id = c.object_id
    AND ep.minor_id = c.column_id
    AND ep.name = 'MS_Description'
WHERE tbl.name = @table
    AND s.name = @schema
ORDER BY c.column_id
"""

PRIMARY_KEY_SQL = """
SELECT
    c.name AS [column]
FROM sys.index_columns ic
INNER JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
INNER JOIN sys.indexes i ON ic.object_id = i.object_id AND ic.index_id = i.index_id
INNER JOIN sys.tables t ON i.object_id = t.object_id
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
WHERE i.is_primary_key = 1
    AND t.name = @table
    AND s.name = @schema
ORDER BY ic.key_ordinal
"""

FOREIGN_KEYS_SQL = """
SELECT
    fk.name AS [name],
    COL_NAME(fkc.parent_object_id, fkc.parent_column_id) AS [column],
    OBJECT_SCHEMA_NAME(fkc.referenced_object_id) AS [referenced_schema],
    OBJECT_NAME(fkc.referenced_object_id) AS [referenced_table],
    COL_NAME(fkc.referenced_object_id, fkc.referenced_column_id) AS [referenced_column]
FROM sys.foreign_keys fk
INNER JOIN sys.foreign_key_columns fkc ON fk.object_id = fkc.constraint_object_id
INNER JOIN sys.tables t ON fk.parent_object_id = t.object_id
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
WHERE t.name = @table
    AND s.name = @schema
"""

INDEXES_SQL = """
SELECT
    i.name AS [name],
    i.type_desc AS [type],
    i.is_unique AS [is_unique],
    i.is_primary_key AS [is_primary_key],
    STRING_AGG(c.name, ', ') WITHIN GROUP (ORDER BY ic.key_ordinal) AS [columns]
FROM sys.indexes i
INNER JOIN sys.index_columns ic ON i.object_id = ic.object_id AND i.index_id = ic.index_id
INNER JOIN sys.columns c ON ic.object_id = c.object_id AND ic.column_id = c.column_id
INNER JOIN sys.tables t ON i.object_id = t.object_id
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
WHERE t.name = @table
    AND s.name = @schema
    AND i.name IS NOT NULL
GROUP BY i.name, i.type_desc, i.is_unique, i.is_primary_key
"""

STATS_SQL = """
SELECT
    p.rows AS [row_count],
    CAST(ROUND(SUM(a.total_pages) * 8.0 / 1024, 2) AS DECIMAL(18,2)) AS [size_mb],
    t.create_date AS [created_at],
    t.modify_date AS [modified_at]
FROM sys.tables t
INNER JOIN sys.schemas s ON t.schema_id = s.schema_id
LEFT JOIN sys.partitions p ON t.object_id = p.object_id AND p.index_id IN (0, 1)
LEFT JOIN sys.allocation_units a ON p.partition_id = a.container_id
WHERE t.name = @table
    AND s.name = @schema
GROUP BY p.rows, t.create_date, t.modify_date
"""


async def handler(table: str, schema: Optional[str] = DEFAULT_SCHEMA) -> str:
    """Describe ``schema.table``.

    Data Access:
        Five catalog queries run concurrently, each on its own pooled connection.

    Returns:
        JSON envelope with schema, table, columns, primary_key, foreign_keys,
        indexes and stats (None when the table does not exist).
    """
    start_time = time.monotonic()

    if err := require_non_empty(table, "table", TOOL_NAME):
        return err

    schema = schema or DEFAULT_SCHEMA
    params = {"table": table, "schema": schema}
    try:
        executor = Database.get_executor()
        columns, primary_key, foreign_keys, indexes, stats = await asyncio.gather(
            executor.execute_query(COLUMNS_SQL, params, row_limit=500),
            executor.execute_query(PRIMARY_KEY_SQL, params, row_limit=50),
            executor.execute_query(FOREIGN_KEYS_SQL, params, row_limit=100),
            executor.execute_query(INDEXES_SQL, params, row_limit=100),
            executor.execute_query(STATS_SQL, params, row_limit=1),
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "schema": schema,
            "table": table,
            "columns": columns.rows,
            "primary_key": [row["column"] for row in primary_key.rows],
            "foreign_keys": foreign_keys.rows,
            "indexes": indexes.rows,
            "stats": stats.rows[0] if stats.rows else None,
        },
        start_time,
    )
