"""Central registry for MCP tools.

This module provides a single point of registration for all MCP tools.
It collects tool modules and registers them with the FastMCP server.
"""

import logging
from typing import TYPE_CHECKING, List, Set

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from common.config.settings import Settings

logger = logging.getLogger(__name__)

# Tools that never modify data; always registered.
READ_TOOLS: Set[str] = {
    # Query tools
    "sql_execute",
    # Schema tools
    "schema_list_tables",
    "schema_describe_table",
    "schema_list_columns",
    "schema_list_procedures",
    "schema_list_indexes",
    # Monitoring tools
    "monitor_active_queries",
    "monitor_blocking",
    "monitor_wait_stats",
    "monitor_database_size",
    "monitor_connections",
    "monitor_performance_counters",
    # Analysis tools
    "analyze_query",
    "analyze_suggest_indexes",
    "analyze_unused_indexes",
    "analyze_duplicate_indexes",
    "analyze_fragmentation",
    "analyze_statistics",
}

# Data-modification tools; registered only when the server is not read-only.
WRITE_TOOLS: Set[str] = {
    "sql_insert",
    "sql_update",
    "sql_delete",
}

CANONICAL_TOOLS: Set[str] = READ_TOOLS | WRITE_TOOLS


def get_all_tool_names() -> List[str]:
    """Return list of all canonical tool names."""
    return sorted(CANONICAL_TOOLS)


def get_enabled_tool_names(read_only: bool) -> List[str]:
    """Return the tool names exposed under the given policy."""
    return sorted(READ_TOOLS if read_only else CANONICAL_TOOLS)


def validate_tool_names() -> bool:
    """Validate that no canonical tool names end with '_tool'.

    Returns:
        True if all names are valid, raises ValueError otherwise.
    """
    invalid = [name for name in CANONICAL_TOOLS if name.endswith("_tool")]
    if invalid:
        raise ValueError(f"Tool names must not end with '_tool': {invalid}")
    return True


def register_all(mcp: "FastMCP", settings: "Settings") -> List[str]:
    """Register all tools with the MCP server.

    Args:
        mcp: FastMCP server instance
        settings: Runtime settings; write tools are skipped when read-only.

    Returns:
        The names of the registered tools.
    """
    validate_tool_names()

    # Analysis tools
    from mcp_server.tools.analyze.duplicate_indexes import handler as analyze_duplicate_indexes
    from mcp_server.tools.analyze.fragmentation import handler as analyze_fragmentation
    from mcp_server.tools.analyze.query import handler as analyze_query
    from mcp_server.tools.analyze.statistics import handler as analyze_statistics
    from mcp_server.tools.analyze.suggest_indexes import handler as analyze_suggest_indexes
    from mcp_server.tools.analyze.unused_indexes import handler as analyze_unused_indexes

    # Monitoring tools
    from mcp_server.tools.monitor.active_queries import handler as monitor_active_queries
    from mcp_server.tools.monitor.blocking import handler as monitor_blocking
    from mcp_server.tools.monitor.connections import handler as monitor_connections
    from mcp_server.tools.monitor.database_size import handler as monitor_database_size
    from mcp_server.tools.monitor.performance_counters import (
        handler as monitor_performance_counters,
    )
    from mcp_server.tools.monitor.wait_stats import handler as monitor_wait_stats

    # Schema tools
    from mcp_server.tools.schema.describe_table import handler as schema_describe_table
    from mcp_server.tools.schema.list_columns import handler as schema_list_columns
    from mcp_server.tools.schema.list_indexes import handler as schema_list_indexes
    from mcp_server.tools.schema.list_procedures import handler as schema_list_procedures
    from mcp_server.tools.schema.list_tables import handler as schema_list_tables

    # Query tools
    from mcp_server.tools.sql.delete import handler as sql_delete
    from mcp_server.tools.sql.execute import handler as sql_execute
    from mcp_server.tools.sql.insert import handler as sql_insert
    from mcp_server.tools.sql.update import handler as sql_update

    # Helper for traced registration
    from mcp_server.utils.tracing import trace_tool

    registered: List[str] = []

    def register(name, func):
        traced = trace_tool(name)(func)
        mcp.tool(name=name)(traced)
        registered.append(name)

    # Register query tools
    register("sql_execute", sql_execute)

    # Register schema tools
    register("schema_list_tables", schema_list_tables)
    register("schema_describe_table", schema_describe_table)
    register("schema_list_columns", schema_list_columns)
    register("schema_list_procedures", schema_list_procedures)
    register("schema_list_indexes", schema_list_indexes)

    # Register monitoring tools
    register("monitor_active_queries", monitor_active_queries)
    register("monitor_blocking", monitor_blocking)
    register("monitor_wait_stats", monitor_wait_stats)
    register("monitor_database_size", monitor_database_size)
    register("monitor_connections", monitor_connections)
    register("monitor_performance_counters", monitor_performance_counters)

    # Register analysis tools
    register("analyze_query", analyze_query)
    register("analyze_suggest_indexes", analyze_suggest_indexes)
    register("analyze_unused_indexes", analyze_unused_indexes)
    register("analyze_duplicate_indexes", analyze_duplicate_indexes)
    register("analyze_fragmentation", analyze_fragmentation)
    register("analyze_statistics", analyze_statistics)

    # Register write tools (conditional)
    if not settings.read_only:
        register("sql_insert", sql_insert)
        register("sql_update", sql_update)
        register("sql_delete", sql_delete)
        logger.info("Write tools registered (READONLY=false)")
    else:
        logger.info("Write tools disabled (READONLY=true)")

    logger.info(f"Registered {len(registered)} tools with MCP server")
    return registered
