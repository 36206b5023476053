"""Tests for the aioodbc-backed SQL Server query target."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

pytest.importorskip("aioodbc")

import pyodbc  # noqa: E402

from common.config.settings import Settings  # noqa: E402
from common.errors import DatabaseConnectionError  # noqa: E402
from dal.mssql.binding import bind_values  # noqa: E402
from dal.mssql.query_target import (  # noqa: E402
    MssqlConnection,
    MssqlQueryTargetDatabase,
    _collect_results,
)


class _FakeCursor:
    """Cursor replaying a list of (description, rows, rowcount) result sets."""

    def __init__(self, result_sets):
        self._sets = list(result_sets)
        self._index = 0
        self.executed = []
        self.input_sizes = []

    @property
    def description(self):
        return self._sets[self._index][0]

    @property
    def rowcount(self):
        return self._sets[self._index][2]

    async def fetchall(self):
        return self._sets[self._index][1]

    async def nextset(self):
        if self._index + 1 < len(self._sets):
            self._index += 1
            return True
        return False

    async def setinputsizes(self, sizes=None):
        assert not self.executed, "input sizes must be declared before execute"
        self.input_sizes.append(sizes)

    async def execute(self, sql, *values):
        self.executed.append((sql, values))

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def _settings(**overrides):
    values = dict(read_only=True, server="db", database="app", user="u", password="p")
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def _reset_pool():
    yield
    MssqlQueryTargetDatabase._pool = None
    MssqlQueryTargetDatabase._settings = None


class TestCollectResults:
    """Batch output collection."""

    @pytest.mark.asyncio
    async def test_first_result_set_with_columns_wins(self):
        """Row counts from DML come first; rows come from the projection."""
        cursor = _FakeCursor(
            [
                (None, [], 2),
                ((("affectedRows", int, None, None, None, None, None),), [(2,)], -1),
            ]
        )

        result = await _collect_results(cursor)

        assert result.rows == [{"affectedRows": 2}]
        assert result.rowcount == 2
        assert result.description[0][0] == "affectedRows"

    @pytest.mark.asyncio
    async def test_no_result_sets(self):
        result = await _collect_results(_FakeCursor([(None, [], -1)]))
        assert result.rows == []
        assert result.description is None
        assert result.rowcount == -1


class TestMssqlConnection:
    """Connection adapter."""

    @pytest.mark.asyncio
    async def test_run_passes_positional_values(self):
        """Values are spread into cursor.execute."""
        cursor = _FakeCursor([((("id", int),), [(1,), (2,)], -1)])
        raw_conn = MagicMock()
        raw_conn.cursor.return_value = cursor

        result = await MssqlConnection(raw_conn).run("SELECT id FROM t WHERE a = ?", [5])

        assert cursor.executed == [("SELECT id FROM t WHERE a = ?", (5,))]
        assert result.rows == [{"id": 1}, {"id": 2}]
        assert cursor.input_sizes == []

    @pytest.mark.asyncio
    async def test_run_declares_bind_types_to_driver(self):
        """Each bind type reaches the driver as an explicit input size."""
        cursor = _FakeCursor([(None, [], 1)])
        raw_conn = MagicMock()
        raw_conn.cursor.return_value = cursor
        bound = bind_values([None, "x", 5, 2.5, True, 3.0])

        await MssqlConnection(raw_conn).run(
            "SELECT ?, ?, ?, ?, ?, ?",
            [value for _, value in bound],
            [kind for kind, _ in bound],
        )

        assert cursor.input_sizes == [
            [
                (pyodbc.SQL_WVARCHAR, 0, 0),
                (pyodbc.SQL_WVARCHAR, 0, 0),
                (pyodbc.SQL_BIGINT, 0, 0),
                (pyodbc.SQL_DOUBLE, 0, 0),
                (pyodbc.SQL_BIT, 0, 0),
                (pyodbc.SQL_BIGINT, 0, 0),
            ]
        ]
        assert cursor.executed == [("SELECT ?, ?, ?, ?, ?, ?", (None, "x", 5, 2.5, True, 3))]


class TestPoolLifecycle:
    """Pool creation and checkout."""

    @pytest.mark.asyncio
    async def test_init_configures_pool(self):
        """The pool is created with autocommit and the configured sizes."""
        pool = MagicMock()
        with patch("aioodbc.create_pool", new=AsyncMock(return_value=pool)) as create_pool:
            await MssqlQueryTargetDatabase.init(_settings(pool_min=1, pool_max=4))

        kwargs = create_pool.call_args.kwargs
        assert kwargs["minsize"] == 1
        assert kwargs["maxsize"] == 4
        assert kwargs["autocommit"] is True
        assert "PWD=p;" in kwargs["dsn"]
        assert MssqlQueryTargetDatabase._pool is pool

    @pytest.mark.asyncio
    async def test_after_created_sets_timeout(self):
        """Every new connection receives the query timeout in seconds."""
        with patch("aioodbc.create_pool", new=AsyncMock(return_value=MagicMock())) as create_pool:
            await MssqlQueryTargetDatabase.init(_settings(query_timeout_ms=2500))

        conn = MagicMock()
        await create_pool.call_args.kwargs["after_created"](conn)
        assert conn.timeout == 3

    @pytest.mark.asyncio
    async def test_init_failure_is_sanitized(self):
        """Driver failures at startup become DatabaseConnectionError."""
        import pyodbc

        error = pyodbc.Error("28000", "Login failed for user 'app'. password=hunter2")
        with patch("aioodbc.create_pool", new=AsyncMock(side_effect=error)):
            with pytest.raises(DatabaseConnectionError) as exc_info:
                await MssqlQueryTargetDatabase.init(_settings())

        assert "hunter2" not in exc_info.value.message
        assert MssqlQueryTargetDatabase._pool is None

    @pytest.mark.asyncio
    async def test_get_connection_requires_init(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            async with MssqlQueryTargetDatabase.get_connection():
                pass

    @pytest.mark.asyncio
    async def test_get_connection_releases(self):
        """Connections go back to the pool after use."""
        raw_conn = MagicMock()
        pool = MagicMock()
        pool.acquire = AsyncMock(return_value=raw_conn)
        pool.release = AsyncMock()
        MssqlQueryTargetDatabase._pool = pool

        async with MssqlQueryTargetDatabase.get_connection() as conn:
            assert isinstance(conn, MssqlConnection)

        pool.release.assert_awaited_once_with(raw_conn)

    @pytest.mark.asyncio
    async def test_close(self):
        pool = MagicMock()
        pool.wait_closed = AsyncMock()
        MssqlQueryTargetDatabase._pool = pool

        await MssqlQueryTargetDatabase.close()

        pool.close.assert_called_once()
        assert MssqlQueryTargetDatabase.is_connected() is False
