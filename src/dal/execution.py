"""Governed execution path between the tool layer and the pool.

Every statement goes through :class:`QueryExecutor`: read-only validation,
named-parameter translation and binding, dispatch, row limiting and error
classification. Raw values are never rendered into SQL text.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from common.config.settings import Settings
from common.errors import (
    DatabaseConnectionError,
    DatabaseError,
    InvalidOperationError,
    McpError,
    QueryTimeoutError,
    QueryValidationError,
    ReadOnlyViolationError,
    sanitize_error_message,
)
from dal.error_classification import (
    classify_error_info,
    emit_classified_error,
    extract_driver_message,
    extract_sqlstate,
    is_timeout_error,
)
from dal.mssql.binding import bind_values
from dal.mssql.param_translation import translate_named_params_to_odbc
from dal.util.column_metadata import columns_from_cursor_description
from dal.util.read_only import get_query_type, validate_read_only_query
from dal.util.row_limits import cap_rows_with_metadata

logger = logging.getLogger(__name__)

DEFAULT_ROW_LIMIT = 100
MAX_LOGGED_QUERY_CHARS = 200

ParamMap = Mapping[str, Union[str, int, float, bool, None]]


@dataclass
class ExecutionResult:
    """Rows from a read query plus the untruncated count."""

    rows: List[Dict[str, Any]]
    row_count_total: int
    fields: List[Dict[str, str]] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def truncated(self) -> bool:
        return self.row_count_total > len(self.rows)


@dataclass
class WriteResult:
    """Outcome of a data-modification statement."""

    affected_rows: int
    duration_ms: int
    inserted_id: Optional[Any] = None


def _elapsed_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)


def _first_keyword(sql: str) -> str:
    query_type = get_query_type(sql)
    return "UNKNOWN" if query_type == "EMPTY" else query_type


class QueryExecutor:
    """Run SQL under the configured read-only policy.

    Args:
        policy: ``Settings`` or a bare ``read_only`` flag.
        connection_factory: Callable returning an async context manager that
            yields a connection exposing ``run(sql, values)``.
    """

    def __init__(self, policy: Union[Settings, bool], connection_factory: Callable[[], Any]):
        if isinstance(policy, Settings):
            self._read_only = policy.read_only
        else:
            self._read_only = bool(policy)
        self._connection_factory = connection_factory

    @property
    def read_only(self) -> bool:
        return self._read_only

    def _prepare(self, sql: str, params: Optional[ParamMap]):
        try:
            positional_sql, values = translate_named_params_to_odbc(sql, params)
            bound = bind_values(values)
        except (TypeError, ValueError) as exc:
            raise InvalidOperationError(str(exc)) from exc
        return positional_sql, [value for _, value in bound], [kind for kind, _ in bound]

    def _classified_error(
        self, exc: Exception, sql: str, started_at: float, operation: str
    ) -> McpError:
        duration_ms = _elapsed_ms(started_at)
        classification = classify_error_info(exc)
        message = sanitize_error_message(extract_driver_message(exc))
        logger.error(
            "Query execution failed",
            extra={
                "operation": operation,
                "error": message,
                "duration_ms": duration_ms,
                "query": sql[:MAX_LOGGED_QUERY_CHARS],
                "error_category": classification.category,
            },
        )
        emit_classified_error(operation, classification.category, exc)

        if is_timeout_error(exc):
            return QueryTimeoutError(duration_ms)
        if classification.category == "connectivity":
            return DatabaseConnectionError(message)
        return DatabaseError(message, extract_sqlstate(exc))

    def _validate(self, sql: str) -> None:
        if not self._read_only:
            return
        verdict = validate_read_only_query(sql)
        if not verdict.valid:
            logger.warning(
                "Query rejected by read-only validation",
                extra={"query_type": verdict.query_type, "reason": verdict.reason},
            )
            raise QueryValidationError(
                verdict.reason or "Query validation failed", verdict.query_type
            )

    async def execute_query(
        self,
        sql: str,
        params: Optional[ParamMap] = None,
        row_limit: int = DEFAULT_ROW_LIMIT,
    ) -> ExecutionResult:
        """Run a read query and return at most ``row_limit`` rows.

        Raises:
            QueryValidationError: when read-only and the SQL fails validation.
            QueryTimeoutError: when the driver reports a timeout.
            DatabaseConnectionError: when the pool cannot reach the server.
            DatabaseError: for any other driver error (sanitized).
        """
        self._validate(sql)
        positional_sql, values, bind_types = self._prepare(sql, params)

        started_at = time.monotonic()
        try:
            async with self._connection_factory() as conn:
                result = await conn.run(positional_sql, values, bind_types)
        except McpError:
            raise
        except Exception as exc:
            raise self._classified_error(exc, sql, started_at, "execute_query") from exc

        duration_ms = _elapsed_ms(started_at)
        rows, _ = cap_rows_with_metadata(list(result.rows), max(0, row_limit))
        logger.debug(
            "Query executed",
            extra={
                "rows_returned": len(rows),
                "total_rows": len(result.rows),
                "duration_ms": duration_ms,
                "read_only": self._read_only,
            },
        )
        return ExecutionResult(
            rows=rows,
            row_count_total=len(result.rows),
            fields=columns_from_cursor_description(result.description),
            duration_ms=duration_ms,
        )

    async def execute_write(self, sql: str, params: Optional[ParamMap] = None) -> WriteResult:
        """Run a data-modification batch and report the affected row count.

        Raises:
            ReadOnlyViolationError: always when the server is read-only.
        """
        if self._read_only:
            raise ReadOnlyViolationError(_first_keyword(sql))

        positional_sql, values, bind_types = self._prepare(sql, params)

        started_at = time.monotonic()
        try:
            async with self._connection_factory() as conn:
                result = await conn.run(positional_sql, values, bind_types)
        except McpError:
            raise
        except Exception as exc:
            raise self._classified_error(exc, sql, started_at, "execute_write") from exc

        duration_ms = _elapsed_ms(started_at)
        projection = result.rows[0] if result.rows else {}
        if projection.get("affectedRows") is not None:
            affected_rows = int(projection["affectedRows"])
        elif result.rowcount >= 0:
            affected_rows = result.rowcount
        else:
            affected_rows = 0
        inserted_id = projection.get("insertedId")

        logger.info(
            "Write operation executed",
            extra={"affected_rows": affected_rows, "duration_ms": duration_ms},
        )
        return WriteResult(
            affected_rows=affected_rows, duration_ms=duration_ms, inserted_id=inserted_id
        )

    async def execute_scalar(self, sql: str, params: Optional[ParamMap] = None) -> Any:
        """Return the first column of the first row, or None."""
        result = await self.execute_query(sql, params, row_limit=1)
        if not result.rows:
            return None
        return next(iter(result.rows[0].values()), None)

    async def explain_query(self, sql: str, params: Optional[ParamMap] = None) -> Optional[str]:
        """Return the estimated XML showplan for ``sql`` without executing it."""
        self._validate(sql)
        positional_sql, values, bind_types = self._prepare(sql, params)

        started_at = time.monotonic()
        try:
            async with self._connection_factory() as conn:
                await conn.run("SET SHOWPLAN_XML ON")
                try:
                    result = await conn.run(positional_sql, values, bind_types)
                finally:
                    await conn.run("SET SHOWPLAN_XML OFF")
        except McpError:
            raise
        except Exception as exc:
            raise self._classified_error(exc, sql, started_at, "explain_query") from exc

        if not result.rows:
            return None
        plan = next(iter(result.rows[0].values()), None)
        return None if plan is None else str(plan)
