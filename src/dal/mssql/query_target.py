import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

import aioodbc
import pyodbc

from common.config.settings import Settings
from common.errors import DatabaseConnectionError, sanitize_error_message
from dal.error_classification import extract_driver_message
from dal.mssql.binding import BindType
from dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)

# (sql_type, column_size, decimal_digits) per bind type; size 0 sends NVARCHAR(MAX).
INPUT_SIZES = {
    BindType.NVARCHAR: (pyodbc.SQL_WVARCHAR, 0, 0),
    BindType.BIGINT: (pyodbc.SQL_BIGINT, 0, 0),
    BindType.FLOAT: (pyodbc.SQL_DOUBLE, 0, 0),
    BindType.BIT: (pyodbc.SQL_BIT, 0, 0),
}


class CursorResult(NamedTuple):
    """Driver output for one batch.

    ``rows`` and ``description`` come from the first result set that has
    columns; ``rowcount`` is the first non-negative count reported by a
    statement that returned no columns (-1 when none did).
    """

    rows: List[Dict[str, Any]]
    description: Optional[list]
    rowcount: int


class MssqlQueryTargetDatabase:
    """SQL Server query-target database using an aioodbc pool."""

    _pool: Optional[aioodbc.Pool] = None
    _settings: Optional[Settings] = None

    @classmethod
    async def init(cls, settings: Settings) -> None:
        """Create the shared pool; every connection gets the query timeout."""
        cls._settings = settings
        if cls._pool is not None:
            return

        timeout_seconds = settings.query_timeout_seconds

        async def _configure_connection(conn: pyodbc.Connection) -> None:
            conn.timeout = timeout_seconds

        logger.info(
            "Connecting to SQL Server",
            extra={
                "server": settings.server,
                "database": settings.database,
                "port": settings.port,
            },
        )
        try:
            cls._pool = await aioodbc.create_pool(
                dsn=settings.odbc_connection_string(),
                minsize=settings.pool_min,
                maxsize=settings.pool_max,
                autocommit=True,
                after_created=_configure_connection,
            )
        except pyodbc.Error as exc:
            message = sanitize_error_message(extract_driver_message(exc))
            logger.error("Failed to connect to SQL Server", extra={"error": message})
            raise DatabaseConnectionError(f"Failed to connect to SQL Server: {message}") from exc
        logger.info("Connected to SQL Server successfully")

    @classmethod
    async def close(cls) -> None:
        """Close the pool and wait for checked-out connections to drain."""
        if cls._pool is not None:
            cls._pool.close()
            await cls._pool.wait_closed()
            cls._pool = None
            logger.info("Connection pool closed")

    @classmethod
    def is_connected(cls) -> bool:
        """Return True when the pool is open."""
        return cls._pool is not None and not cls._pool.closed

    @classmethod
    @asynccontextmanager
    async def get_connection(cls):
        """Yield a pooled connection wrapper."""
        if cls._pool is None:
            raise RuntimeError(
                "SQL Server pool not initialized. Call MssqlQueryTargetDatabase.init()."
            )

        try:
            conn = await cls._pool.acquire()
        except pyodbc.Error as exc:
            raise DatabaseConnectionError(
                "Failed to connect to SQL Server: "
                + sanitize_error_message(extract_driver_message(exc))
            ) from exc
        try:
            yield MssqlConnection(conn)
        finally:
            await cls._pool.release(conn)


class MssqlConnection:
    """Adapter running parameterized batches on one aioodbc connection."""

    def __init__(self, conn: aioodbc.Connection) -> None:
        self._conn = conn

    async def run(
        self,
        sql: str,
        values: Sequence[Any] = (),
        bind_types: Sequence[BindType] = (),
    ) -> CursorResult:
        """Execute ``sql`` with positional ``?`` values and collect its output.

        When ``bind_types`` is given, the driver receives the declared SQL type
        of each value instead of guessing it from the Python type.
        """

        async def _run():
            async with self._conn.cursor() as cursor:
                if bind_types:
                    await cursor.setinputsizes([INPUT_SIZES[kind] for kind in bind_types])
                await cursor.execute(sql, *values)
                return await _collect_results(cursor)

        return await trace_query_operation("dal.query.execute", sql=sql, operation=_run())


async def _collect_results(cursor: Any) -> CursorResult:
    rows: List[Dict[str, Any]] = []
    description: Optional[list] = None
    rowcount = -1

    while True:
        if cursor.description:
            if description is None:
                description = list(cursor.description)
                columns = [column[0] for column in description]
                rows = [dict(zip(columns, row)) for row in await cursor.fetchall()]
        elif rowcount < 0 and cursor.rowcount is not None and cursor.rowcount >= 0:
            rowcount = cursor.rowcount
        if not await cursor.nextset():
            break

    return CursorResult(rows=rows, description=description, rowcount=rowcount)
