"""MCP tool: sql_insert - Insert one row into a table."""

import time
from decimal import Decimal
from typing import Any, Dict, Optional

from common.errors import ReadOnlyViolationError
from dal.database import Database
from dal.mssql.statements import DEFAULT_SCHEMA, build_insert
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import require_non_empty, validate_mapping

TOOL_NAME = "sql_insert"
TOOL_DESCRIPTION = (
    "Insert a row into a SQL Server table. Values are sent as parameters. "
    "Only available when the server is not read-only."
)


def _identity_value(value: Any) -> Any:
    # SCOPE_IDENTITY() is numeric(38, 0)
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    return value


async def handler(table: str, data: Dict[str, Any], schema: Optional[str] = DEFAULT_SCHEMA) -> str:
    """Insert ``data`` as a single row of ``schema.table``.

    Args:
        table: Target table name.
        data: Column to value mapping.
        schema: Target schema (default dbo).

    Returns:
        JSON envelope with success, table, affected_rows, inserted_id and duration_ms.
    """
    start_time = time.monotonic()

    if err := require_non_empty(table, "table", TOOL_NAME):
        return err
    if err := validate_mapping(data, "data", TOOL_NAME):
        return err

    schema = schema or DEFAULT_SCHEMA
    try:
        executor = Database.get_executor()
        if executor.read_only:
            raise ReadOnlyViolationError("INSERT")
        statement = build_insert(schema, table, data)
        outcome = await executor.execute_write(statement.sql, statement.params)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "success": True,
            "table": f"{schema}.{table}",
            "affected_rows": outcome.affected_rows,
            "inserted_id": _identity_value(outcome.inserted_id),
            "duration_ms": outcome.duration_ms,
        },
        start_time,
        read_only=False,
    )
