"""Data Abstraction Layer (DAL) for the SQL Server MCP server.

The executor is the single path to the query target; tool handlers obtain it
from :class:`dal.database.Database`.
"""

from dal.execution import ExecutionResult, QueryExecutor, WriteResult

__all__ = [
    "ExecutionResult",
    "QueryExecutor",
    "WriteResult",
]
