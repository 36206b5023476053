"""MCP tool: sql_update - Update rows matching a WHERE clause."""

import time
from typing import Any, Dict, Optional, Union

from common.errors import ReadOnlyViolationError
from dal.database import Database
from dal.mssql.statements import DEFAULT_SCHEMA, build_update
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import require_non_empty, validate_mapping

TOOL_NAME = "sql_update"
TOOL_DESCRIPTION = (
    "Update rows in a SQL Server table. A WHERE clause is required; use @name "
    "placeholders with params for its values."
)

ParamValue = Union[str, int, float, bool, None]


async def handler(
    table: str,
    data: Dict[str, Any],
    where: str,
    params: Optional[Dict[str, ParamValue]] = None,
    schema: Optional[str] = DEFAULT_SCHEMA,
) -> str:
    """Update ``schema.table`` setting ``data`` on rows matching ``where``."""
    start_time = time.monotonic()

    if err := require_non_empty(table, "table", TOOL_NAME):
        return err
    if err := validate_mapping(data, "data", TOOL_NAME):
        return err
    if err := validate_mapping(params, "params", TOOL_NAME):
        return err

    schema = schema or DEFAULT_SCHEMA
    try:
        executor = Database.get_executor()
        if executor.read_only:
            raise ReadOnlyViolationError("UPDATE")
        statement = build_update(schema, table, data, where, params)
        outcome = await executor.execute_write(statement.sql, statement.params)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "success": True,
            "table": f"{schema}.{table}",
            "affected_rows": outcome.affected_rows,
            "duration_ms": outcome.duration_ms,
        },
        start_time,
        read_only=False,
    )
