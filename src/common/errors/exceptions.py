"""Exception taxonomy shared by the DAL and the MCP tool layer."""

from __future__ import annotations

from typing import Optional, Sequence

from common.errors.error_codes import ErrorCode


class McpError(Exception):
    """Base error carrying a stable machine-readable code."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: Optional[ErrorCode] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class QueryValidationError(McpError):
    """SQL text was rejected by the read-only validator."""

    code = ErrorCode.QUERY_VALIDATION_ERROR

    def __init__(self, message: str, query_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.query_type = query_type


class ReadOnlyViolationError(McpError):
    """A write entry point was invoked while the server is read-only."""

    code = ErrorCode.READONLY_VIOLATION

    def __init__(self, operation: str) -> None:
        super().__init__(
            f'Operation blocked in READONLY mode: "{operation}" is not allowed. '
            "Only SELECT queries are permitted."
        )
        self.operation = operation


class DatabaseConnectionError(McpError, ConnectionError):
    """The pool or driver could not establish a connection."""

    code = ErrorCode.CONNECTION_ERROR


class QueryTimeoutError(McpError, TimeoutError):
    """The statement exceeded the configured time budget."""

    code = ErrorCode.TIMEOUT_ERROR

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(
            f"Query timed out after {timeout_ms}ms. "
            "Consider optimizing your query or increasing the timeout."
        )
        self.timeout_ms = timeout_ms


class MissingParameterError(McpError):
    """A required tool or builder argument was not supplied."""

    code = ErrorCode.MISSING_PARAMETER

    def __init__(self, parameter_name: str) -> None:
        super().__init__(f'Required parameter "{parameter_name}" is missing')
        self.parameter_name = parameter_name


class InvalidOperationError(McpError):
    """The requested operation is structurally invalid."""

    code = ErrorCode.INVALID_OPERATION


class DatabaseError(McpError):
    """Driver error passed through with a sanitized message."""

    code = ErrorCode.DATABASE_ERROR

    def __init__(self, message: str, sqlstate: Optional[str] = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class ConfigurationError(McpError):
    """Startup configuration is missing or malformed."""

    code = ErrorCode.CONFIGURATION_ERROR

    def __init__(self, issues: Sequence[str]) -> None:
        self.issues = list(issues)
        super().__init__("Invalid configuration: " + "; ".join(self.issues))
