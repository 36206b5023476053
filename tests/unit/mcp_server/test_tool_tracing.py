"""Tests for envelope-level MCP tracing status handling."""

import json
from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from mcp_server.utils.tracing import trace_tool


def _in_memory_tracer():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider.get_tracer("mcp.server"), exporter


@pytest.mark.asyncio
async def test_trace_tool_marks_error_for_error_envelope():
    """Envelope responses with an error mark the span as ERROR."""
    tracer, exporter = _in_memory_tracer()

    async def handler():
        return json.dumps(
            {
                "result": None,
                "metadata": {"provider": "mssql"},
                "error": {"category": "mutation_blocked", "message": "blocked"},
            }
        )

    with patch("opentelemetry.trace.get_tracer", return_value=tracer):
        await trace_tool("sql_insert")(handler)()

    span = exporter.get_finished_spans()[0]
    assert span.name == "mcp.tool.sql_insert"
    assert span.status.status_code == StatusCode.ERROR
    assert span.attributes["mcp.tool.error.category"] == "mutation_blocked"


@pytest.mark.asyncio
async def test_trace_tool_marks_ok_for_success():
    """Successful envelopes mark the span OK and record size and duration."""
    tracer, exporter = _in_memory_tracer()

    async def handler(query):
        return json.dumps({"result": {"rows": []}, "metadata": {}})

    with patch("opentelemetry.trace.get_tracer", return_value=tracer):
        response = await trace_tool("sql_execute")(handler)(query="SELECT 1")

    span = exporter.get_finished_spans()[0]
    assert span.status.status_code == StatusCode.OK
    assert span.attributes["mcp.tool.name"] == "sql_execute"
    assert span.attributes["mcp.tool.response.size_bytes"] == len(response)
    assert span.attributes["mcp.tool.duration_ms"] >= 0


@pytest.mark.asyncio
async def test_trace_tool_records_raised_exceptions():
    """Exceptions are recorded on the span and re-raised."""
    tracer, exporter = _in_memory_tracer()

    async def handler():
        raise RuntimeError("boom")

    with patch("opentelemetry.trace.get_tracer", return_value=tracer):
        with pytest.raises(RuntimeError):
            await trace_tool("monitor_blocking")(handler)()

    span = exporter.get_finished_spans()[0]
    assert span.status.status_code == StatusCode.ERROR
    assert span.events[0].name == "exception"


def test_trace_tool_preserves_signature():
    """FastMCP derives the tool schema from the wrapped signature."""

    async def handler(table: str, schema: str = "dbo") -> str:
        """Describe a table."""
        return ""

    traced = trace_tool("schema_describe_table")(handler)
    assert traced.__name__ == "handler"
    assert traced.__doc__ == "Describe a table."
    assert traced.__wrapped__ is handler
