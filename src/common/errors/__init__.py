"""Common error taxonomy helpers."""

from common.errors.error_codes import ErrorCode, category_for_error_code, parse_error_code
from common.errors.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    DatabaseError,
    InvalidOperationError,
    McpError,
    MissingParameterError,
    QueryTimeoutError,
    QueryValidationError,
    ReadOnlyViolationError,
)
from common.errors.sanitization import sanitize_error_message, sanitize_exception

__all__ = [
    "ConfigurationError",
    "DatabaseConnectionError",
    "DatabaseError",
    "ErrorCode",
    "InvalidOperationError",
    "McpError",
    "MissingParameterError",
    "QueryTimeoutError",
    "QueryValidationError",
    "ReadOnlyViolationError",
    "category_for_error_code",
    "parse_error_code",
    "sanitize_error_message",
    "sanitize_exception",
]
