"""Tests for the MCP server entrypoint."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from common.config.settings import Settings
from common.errors import ConfigurationError
from mcp_server import main as server_main


def _settings():
    return Settings(read_only=True, server="h", database="d", user="u", password="p")


def test_create_server_registers_tools():
    """The server is named and receives every enabled tool."""
    settings = _settings()
    with (
        patch.object(server_main, "FastMCP") as fastmcp,
        patch.object(server_main, "register_all") as register_all,
    ):
        mcp = server_main.create_server(settings)

    assert mcp is fastmcp.return_value
    assert fastmcp.call_args.args == (server_main.SERVER_NAME,)
    assert "lifespan" in fastmcp.call_args.kwargs
    register_all.assert_called_once_with(fastmcp.return_value, settings)


@pytest.mark.asyncio
async def test_lifespan_opens_and_closes_pool():
    """The pool opens on startup and closes on shutdown."""
    settings = _settings()
    with (
        patch.object(server_main, "FastMCP") as fastmcp,
        patch.object(server_main, "register_all"),
    ):
        server_main.create_server(settings)
    lifespan = fastmcp.call_args.kwargs["lifespan"]

    with (
        patch.object(server_main.Database, "init", new=AsyncMock()) as init,
        patch.object(server_main.Database, "close", new=AsyncMock()) as close,
    ):
        async with lifespan(MagicMock()):
            init.assert_awaited_once_with(settings)
            close.assert_not_awaited()

    close.assert_awaited_once()


def test_setup_telemetry_console_exporter(monkeypatch):
    """OTEL_CONSOLE_EXPORTER adds a span processor writing to stderr."""
    monkeypatch.setenv("OTEL_CONSOLE_EXPORTER", "true")
    monkeypatch.setenv("OTEL_SERVICE_NAME", "gateway-test")
    monkeypatch.delenv("OTEL_EXPORTER_OTLP_ENDPOINT", raising=False)

    with patch.object(server_main.trace, "set_tracer_provider") as set_provider:
        provider = server_main.setup_telemetry()

    set_provider.assert_called_once_with(provider)
    assert provider.resource.attributes["service.name"] == "gateway-test"


def test_main_exits_on_configuration_error(capsys):
    """Every configuration issue is printed before exiting with status 1."""
    error = ConfigurationError(["SQL_SERVER is required", "MAX_ROWS must be <= 5000"])

    with (
        patch.object(server_main, "load_dotenv"),
        patch.object(server_main, "load_settings", side_effect=error),
        patch.object(server_main, "create_server") as create_server,
    ):
        with pytest.raises(SystemExit) as exit_info:
            server_main.main()

    assert exit_info.value.code == 1
    stderr = capsys.readouterr().err
    assert "Configuration error:" in stderr
    assert "  - SQL_SERVER is required" in stderr
    assert "  - MAX_ROWS must be <= 5000" in stderr
    create_server.assert_not_called()


def test_main_runs_stdio_transport():
    settings = _settings()
    with (
        patch.object(server_main, "load_dotenv"),
        patch.object(server_main, "load_settings", return_value=settings),
        patch.object(server_main, "configure_logging") as configure_logging,
        patch.object(server_main, "setup_telemetry"),
        patch.object(server_main, "create_server") as create_server,
    ):
        server_main.main()

    configure_logging.assert_called_once_with(settings.log_level)
    create_server.return_value.run.assert_called_once_with(transport="stdio")
