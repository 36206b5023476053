"""MCP tool: schema_list_procedures - List stored procedures."""

import time
from typing import Optional

from common.sanitization.bounding import bound_text_fields
from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception

TOOL_NAME = "schema_list_procedures"
TOOL_DESCRIPTION = (
    "List stored procedures in the database with optional filtering by schema and "
    "name pattern."
)

ROW_LIMIT = 500
MAX_DEFINITION_CHARS = 2000

_BASE_SQL = """
SELECT
    s.name AS [schema],
    p.name AS [name],
    p.type_desc AS [type],
    p.create_date AS [created_at],
    p.modify_date AS [modified_at],
    (
        SELECT COUNT(*)
        FROM sys.parameters param
        WHERE param.object_id = p.object_id
    ) AS [parameter_count],
    OBJECT_DEFINITION(p.object_id) AS [definition]
FROM sys.procedures p
INNER JOIN sys.schemas s ON p.schema_id = s.schema_id
WHERE 1=1"""


def build_query(schema: Optional[str], pattern: Optional[str]) -> str:
    sql = _BASE_SQL
    if schema:
        sql += " AND s.name = @schema"
    if pattern:
        sql += " AND p.name LIKE @pattern"
    return sql + "\nORDER BY s.name, p.name"


async def handler(schema: Optional[str] = None, pattern: Optional[str] = None) -> str:
    """List stored procedures; definitions are cut at 2000 characters."""
    start_time = time.monotonic()

    params = {}
    if schema:
        params["schema"] = schema
    if pattern:
        params["pattern"] = pattern

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(
            build_query(schema, pattern), params, row_limit=ROW_LIMIT
        )
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    procedures = bound_text_fields(result.rows, {"definition": MAX_DEFINITION_CHARS})
    return tool_success_response(
        {"procedures": procedures, "count": len(procedures)},
        start_time,
        returned_count=len(procedures),
        total_count=result.row_count_total,
        limit_applied=ROW_LIMIT,
    )
