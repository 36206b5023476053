"""Tests for DAL support helpers: row limits, column metadata, tracing and Database."""

from unittest.mock import AsyncMock, patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from common.config.settings import Settings
from dal.database import Database
from dal.execution import QueryExecutor
from dal.tracing import trace_query_operation
from dal.util.column_metadata import columns_from_cursor_description
from dal.util.row_limits import cap_rows_with_metadata, clamp_row_limit


class TestRowLimits:
    """Row-limit clamping and capping."""

    @pytest.mark.parametrize(
        "requested,ceiling,expected",
        [(None, 1000, 100), (50, 1000, 50), (5000, 1000, 1000), (0, 1000, 1), (-3, 10, 1)],
    )
    def test_clamp_row_limit(self, requested, ceiling, expected):
        assert clamp_row_limit(requested, ceiling) == expected

    def test_cap_rows_with_metadata(self):
        assert cap_rows_with_metadata([1, 2, 3], 2) == ([1, 2], True)
        assert cap_rows_with_metadata([1, 2], 2) == ([1, 2], False)
        assert cap_rows_with_metadata([1, 2], 0) == ([], True)
        assert cap_rows_with_metadata([1, 2], None) == ([1, 2], False)


class TestColumnMetadata:
    """Cursor description mapping."""

    def test_pyodbc_description(self):
        """pyodbc reports Python types as type codes."""
        description = [("id", int, None, 10, 10, 0, False), ("name", str, None, 50, 50, 0, True)]
        assert columns_from_cursor_description(description) == [
            {"name": "id", "type": "int"},
            {"name": "name", "type": "str"},
        ]

    def test_missing_description(self):
        assert columns_from_cursor_description(None) == []

    def test_unknown_type_code(self):
        assert columns_from_cursor_description([("x", None)]) == [{"name": "x", "type": "unknown"}]


class TestTraceQueryOperation:
    """DAL query spans."""

    @pytest.mark.asyncio
    async def test_span_carries_statement_hash_only(self):
        """The SQL text is hashed, never attached."""
        exporter = InMemorySpanExporter()
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))

        async def _op():
            return "done"

        with patch("opentelemetry.trace.get_tracer", return_value=provider.get_tracer("dal")):
            result = await trace_query_operation("dal.query.execute", "SELECT 1", _op())

        assert result == "done"
        span = exporter.get_finished_spans()[0]
        assert span.attributes["db.provider"] == "mssql"
        assert span.attributes["db.status"] == "ok"
        assert len(span.attributes["db.statement_hash"]) == 64
        assert "SELECT 1" not in span.attributes.values()

    @pytest.mark.asyncio
    async def test_disabled_tracing_runs_operation(self, monkeypatch):
        monkeypatch.setenv("DAL_TRACE_QUERIES", "false")

        async def _op():
            return 5

        assert await trace_query_operation("dal.query.execute", "SELECT 1", _op()) == 5


class TestDatabase:
    """Process-wide executor holder."""

    def test_requires_init(self):
        Database._executor = None
        Database._settings = None
        with pytest.raises(RuntimeError, match="not initialized"):
            Database.get_executor()
        with pytest.raises(RuntimeError, match="not initialized"):
            Database.get_settings()

    @pytest.mark.asyncio
    async def test_init_and_close(self):
        """init opens the pool and binds the executor to the policy."""
        pytest.importorskip("aioodbc")
        settings = Settings(read_only=True, server="h", database="d", user="u", password="p")
        with (
            patch("dal.mssql.query_target.MssqlQueryTargetDatabase.init", new=AsyncMock()),
            patch(
                "dal.mssql.query_target.MssqlQueryTargetDatabase.close", new=AsyncMock()
            ) as close,
        ):
            await Database.init(settings)
            executor = Database.get_executor()
            assert isinstance(executor, QueryExecutor)
            assert executor.read_only is True
            assert Database.get_settings() is settings

            await Database.close()

        close.assert_awaited_once()
        assert Database._executor is None
