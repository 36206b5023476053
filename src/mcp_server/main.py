"""MCP Server entrypoint for the SQL Server gateway.

This module loads and validates configuration, initializes the FastMCP server
and registers the database tools via the central registry.
"""

import logging
import sys
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastmcp import FastMCP
from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
)

from common.config.env import get_env_bool, get_env_str
from common.config.settings import Settings, load_settings
from common.errors import ConfigurationError
from common.observability.log_config import configure_logging
from dal.database import Database
from mcp_server.tools.registry import register_all

logger = logging.getLogger(__name__)

SERVER_NAME = "mssql-mcp-server"


def setup_telemetry() -> TracerProvider:
    """Initialize OTEL SDK for the MCP server.

    Spans are exported over OTLP when OTEL_EXPORTER_OTLP_ENDPOINT is set, and to
    stderr when OTEL_CONSOLE_EXPORTER=true. Without either the provider still
    records spans so trace context propagates.
    """
    service_name = get_env_str("OTEL_SERVICE_NAME", SERVER_NAME)
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    trace.set_tracer_provider(provider)

    endpoint = get_env_str("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        logger.info("OTEL initialized for MCP Server", extra={"service_name": service_name})

    if get_env_bool("OTEL_CONSOLE_EXPORTER", False):
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
        logger.info("OTEL console exporter enabled")

    return provider


def create_server(settings: Settings) -> FastMCP:
    """Build the FastMCP server for ``settings`` and register its tools."""

    @asynccontextmanager
    async def lifespan(app):
        """Open the SQL Server pool in the server's event loop; close it on shutdown."""
        await Database.init(settings)
        logger.info("MCP server initialization complete - ready", extra=settings.describe())
        try:
            yield
        finally:
            await Database.close()

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)
    register_all(mcp, settings)
    return mcp


def main() -> None:
    """Run the server over stdio; configuration and pool failures exit with status 1."""
    load_dotenv()

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print("Configuration error:", file=sys.stderr)
        for issue in exc.issues:
            print(f"  - {issue}", file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.log_level)
    setup_telemetry()
    logger.info(
        "Starting MCP server",
        extra={"mode": "READ-ONLY" if settings.read_only else "READ-WRITE"},
    )

    mcp = create_server(settings)
    try:
        mcp.run(transport="stdio")
    except Exception:
        logger.exception("MCP server terminated")
        sys.exit(1)


if __name__ == "__main__":
    main()
