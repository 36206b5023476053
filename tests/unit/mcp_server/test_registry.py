"""Tests for policy-aware tool registration."""

from unittest.mock import MagicMock

import pytest

from common.config.settings import Settings
from mcp_server.tools.registry import (
    CANONICAL_TOOLS,
    READ_TOOLS,
    WRITE_TOOLS,
    get_all_tool_names,
    get_enabled_tool_names,
    register_all,
    validate_tool_names,
)


def _settings(read_only):
    return Settings(read_only=read_only, server="h", database="d", user="u", password="p")


def _mock_mcp():
    mcp = MagicMock()
    registered = {}

    def tool(name):
        def decorator(func):
            registered[name] = func
            return func

        return decorator

    mcp.tool.side_effect = tool
    return mcp, registered


class TestToolSets:
    """Static tool inventories."""

    def test_counts(self):
        assert len(READ_TOOLS) == 18
        assert WRITE_TOOLS == {"sql_insert", "sql_update", "sql_delete"}
        assert CANONICAL_TOOLS == READ_TOOLS | WRITE_TOOLS

    def test_enabled_names_follow_policy(self):
        assert set(get_enabled_tool_names(True)) == READ_TOOLS
        assert get_enabled_tool_names(False) == get_all_tool_names()

    def test_names_are_valid(self):
        assert validate_tool_names() is True


class TestRegisterAll:
    """Registration against a FastMCP double."""

    def test_read_only_omits_write_tools(self):
        """Write tools are never exposed under the read-only policy."""
        mcp, registered = _mock_mcp()

        names = register_all(mcp, _settings(read_only=True))

        assert set(names) == READ_TOOLS
        assert set(registered) == READ_TOOLS
        assert not WRITE_TOOLS & set(registered)

    def test_read_write_registers_everything(self):
        mcp, registered = _mock_mcp()

        names = register_all(mcp, _settings(read_only=False))

        assert set(names) == CANONICAL_TOOLS
        assert len(names) == 21

    def test_handlers_are_traced(self):
        """Each registered callable wraps the module handler."""
        from mcp_server.tools.sql.execute import handler

        mcp, registered = _mock_mcp()
        register_all(mcp, _settings(read_only=True))

        assert registered["sql_execute"].__wrapped__ is handler

    def test_logs_policy(self, caplog):
        mcp, _ = _mock_mcp()
        with caplog.at_level("INFO", logger="mcp_server.tools.registry"):
            register_all(mcp, _settings(read_only=True))
        assert "Write tools disabled (READONLY=true)" in caplog.text


@pytest.mark.parametrize("read_only", [True, False])
def test_registration_with_real_fastmcp(read_only):
    """The real server accepts every handler signature."""
    fastmcp = pytest.importorskip("fastmcp")

    mcp = fastmcp.FastMCP("test")
    names = register_all(mcp, _settings(read_only))

    assert set(names) == (READ_TOOLS if read_only else CANONICAL_TOOLS)
