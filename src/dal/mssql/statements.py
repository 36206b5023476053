"""Parameterized INSERT/UPDATE/DELETE builders for SQL Server.

Identifiers are bracket-quoted and every value is carried in ``params``;
values never appear in the generated SQL text. The WHERE fragment is caller
text and is emitted as given.
"""

from typing import Any, Dict, Mapping, NamedTuple, Optional

from common.errors import InvalidOperationError, MissingParameterError
from dal.mssql.param_translation import PARAM_NAME_PATTERN
from dal.mssql.quoting import quote_identifier, quote_table_name

DEFAULT_SCHEMA = "dbo"


class Statement(NamedTuple):
    """SQL text plus the named parameters it references."""

    sql: str
    params: Dict[str, Any]


def _require_values(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if not values:
        raise InvalidOperationError("Data object cannot be empty")
    for column in values:
        if not isinstance(column, str) or not PARAM_NAME_PATTERN.fullmatch(column):
            raise InvalidOperationError(
                f"Column name {column!r} cannot be used as a parameter name; "
                "use letters, digits and '_'."
            )
    return dict(values)


def _require_where(where: Optional[str]) -> str:
    if where is None or not str(where).strip():
        raise MissingParameterError("where")
    return str(where).strip()


def build_insert(
    schema: Optional[str], table: str, values: Mapping[str, Any]
) -> Statement:
    """Build a single-row INSERT that also returns ``SCOPE_IDENTITY()``."""
    params = _require_values(values)
    columns = ", ".join(quote_identifier(column) for column in params)
    placeholders = ", ".join(f"@{column}" for column in params)
    sql = (
        f"INSERT INTO {quote_table_name(schema or DEFAULT_SCHEMA, table)} ({columns}) "
        f"VALUES ({placeholders}); SELECT SCOPE_IDENTITY() AS insertedId;"
    )
    return Statement(sql, params)


def build_update(
    schema: Optional[str],
    table: str,
    values: Mapping[str, Any],
    where: str,
    where_params: Optional[Mapping[str, Any]] = None,
) -> Statement:
    """Build an UPDATE that reports ``@@ROWCOUNT`` as ``affectedRows``."""
    params = _require_values(values)
    where = _require_where(where)

    for name, value in (where_params or {}).items():
        if name in params:
            raise InvalidOperationError(
                f'Parameter "{name}" is used both as a column value and in the WHERE clause'
            )
        params[name] = value

    assignments = ", ".join(f"{quote_identifier(column)} = @{column}" for column in values)
    sql = (
        f"UPDATE {quote_table_name(schema or DEFAULT_SCHEMA, table)} SET {assignments} "
        f"WHERE {where}; SELECT @@ROWCOUNT AS affectedRows;"
    )
    return Statement(sql, params)


def build_delete(
    schema: Optional[str],
    table: str,
    where: str,
    where_params: Optional[Mapping[str, Any]] = None,
) -> Statement:
    """Build a DELETE that reports ``@@ROWCOUNT`` as ``affectedRows``."""
    where = _require_where(where)
    sql = (
        f"DELETE FROM {quote_table_name(schema or DEFAULT_SCHEMA, table)} "
        f"WHERE {where}; SELECT @@ROWCOUNT AS affectedRows;"
    )
    return Statement(sql, dict(where_params or {}))
