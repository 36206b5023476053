"""MCP tool: monitor_performance_counters - Read SQL Server counters."""

import time
from typing import Any, Dict, List, Optional

from dal.database import Database
from mcp_server.utils.envelopes import elapsed_ms, tool_success_response
from mcp_server.utils.errors import error_response_from_exception
from mcp_server.utils.validation import validate_choice

TOOL_NAME = "monitor_performance_counters"
TOOL_DESCRIPTION = (
    "Monitor SQL Server performance counters by category: buffer, sql, locks, memory, or all."
)

ROW_LIMIT = 500

COUNTER_CATEGORIES: Dict[str, List[str]] = {
    "buffer": [
        "Buffer cache hit ratio",
        "Buffer cache hit ratio base",
        "Page life expectancy",
        "Checkpoint pages/sec",
        "Page reads/sec",
        "Page writes/sec",
        "Lazy writes/sec",
        "Free pages",
        "Total pages",
        "Target pages",
        "Database pages",
    ],
    "sql": [
        "Batch Requests/sec",
        "SQL Compilations/sec",
        "SQL Re-Compilations/sec",
        "Auto-Param Attempts/sec",
        "Failed Auto-Params/sec",
        "Safe Auto-Params/sec",
        "Unsafe Auto-Params/sec",
    ],
    "locks": [
        "Lock Requests/sec",
        "Lock Timeouts/sec",
        "Lock Timeouts (timeout > 0)/sec",
        "Lock Waits/sec",
        "Lock Wait Time (ms)",
        "Number of Deadlocks/sec",
        "Average Wait Time (ms)",
    ],
    "memory": [
        "Total Server Memory (KB)",
        "Target Server Memory (KB)",
        "Memory Grants Pending",
        "Memory Grants Outstanding",
        "Connection Memory (KB)",
        "Lock Memory (KB)",
        "Optimizer Memory (KB)",
        "SQL Cache Memory (KB)",
        "Database Cache Memory (KB)",
    ],
}
CATEGORIES = ("all",) + tuple(COUNTER_CATEGORIES)

HIT_RATIO_COUNTER = "Buffer cache hit ratio"
HIT_RATIO_BASE_COUNTER = "Buffer cache hit ratio base"

_COUNTERS_SQL = """
SELECT
    object_name AS [object],
    counter_name AS [counter],
    instance_name AS [instance],
    cntr_value AS [value],
    cntr_type AS [type]
FROM sys.dm_os_performance_counters
WHERE counter_name IN ({names})
ORDER BY object_name, counter_name, instance_name
"""


def counter_names(category: str) -> List[str]:
    if category == "all":
        return [name for names in COUNTER_CATEGORIES.values() for name in names]
    return list(COUNTER_CATEGORIES[category])


def build_query(category: str) -> str:
    """Return the counter query; names are fixed constants rendered as literals."""
    names = ", ".join("'" + name.replace("'", "''") + "'" for name in counter_names(category))
    return _COUNTERS_SQL.format(names=names)


def buffer_cache_hit_ratio(rows: List[Dict[str, Any]]) -> Optional[str]:
    """Compute the hit ratio from the ratio and base counters, as ``"NN.NN%"``."""
    ratio = base = None
    for row in rows:
        name = (row.get("counter") or "").strip()
        if name == HIT_RATIO_COUNTER and ratio is None:
            ratio = row.get("value")
        elif name == HIT_RATIO_BASE_COUNTER and base is None:
            base = row.get("value")
    if ratio is None or not base:
        return None
    return f"{round(ratio / base * 100, 2):.2f}%"


def group_counters(rows: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Group counter rows by their trimmed performance object name."""
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for row in rows:
        instance = (row.get("instance") or "").strip()
        grouped.setdefault((row.get("object") or "").strip(), []).append(
            {
                "counter": (row.get("counter") or "").strip(),
                "instance": instance or None,
                "value": row.get("value"),
            }
        )
    return grouped


async def handler(category: str = "all") -> str:
    """Read performance counters for one category, or all of them."""
    start_time = time.monotonic()

    if err := validate_choice(category, "category", TOOL_NAME, CATEGORIES):
        return err

    try:
        executor = Database.get_executor()
        result = await executor.execute_query(build_query(category), row_limit=ROW_LIMIT)
    except Exception as exc:
        return error_response_from_exception(exc, TOOL_NAME, elapsed_ms(start_time))

    return tool_success_response(
        {
            "category": category,
            "buffer_cache_hit_ratio": buffer_cache_hit_ratio(result.rows),
            "counters": group_counters(result.rows),
            "total_counters": len(result.rows),
        },
        start_time,
        returned_count=len(result.rows),
        total_count=result.row_count_total,
        limit_applied=ROW_LIMIT,
    )
