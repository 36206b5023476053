"""Canonical error-code taxonomy for DAL/MCP flows."""

from __future__ import annotations

from enum import Enum
from typing import Any

from common.models.error_metadata import ErrorCategory


class ErrorCode(str, Enum):
    """Bounded canonical error codes for external contracts and observability."""

    QUERY_VALIDATION_ERROR = "QUERY_VALIDATION_ERROR"
    READONLY_VIOLATION = "READONLY_VIOLATION"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    INVALID_OPERATION = "INVALID_OPERATION"
    DATABASE_ERROR = "DATABASE_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


_CODE_TO_CATEGORY: dict[ErrorCode, ErrorCategory] = {
    ErrorCode.QUERY_VALIDATION_ERROR: ErrorCategory.INVALID_REQUEST,
    ErrorCode.READONLY_VIOLATION: ErrorCategory.MUTATION_BLOCKED,
    ErrorCode.CONNECTION_ERROR: ErrorCategory.CONNECTIVITY,
    ErrorCode.TIMEOUT_ERROR: ErrorCategory.TIMEOUT,
    ErrorCode.MISSING_PARAMETER: ErrorCategory.INVALID_REQUEST,
    ErrorCode.INVALID_OPERATION: ErrorCategory.INVALID_REQUEST,
    ErrorCode.DATABASE_ERROR: ErrorCategory.UNKNOWN,
    ErrorCode.CONFIGURATION_ERROR: ErrorCategory.INTERNAL,
    ErrorCode.INTERNAL_ERROR: ErrorCategory.INTERNAL,
}


def parse_error_code(value: Any) -> ErrorCode:
    """Parse arbitrary input into a canonical error code."""
    if isinstance(value, ErrorCode):
        return value
    if isinstance(value, str):
        normalized = value.strip().upper()
        for code in ErrorCode:
            if code.value == normalized:
                return code
    return ErrorCode.INTERNAL_ERROR


def category_for_error_code(value: Any) -> ErrorCategory:
    """Return the tool-facing error category for a canonical code."""
    return _CODE_TO_CATEGORY[parse_error_code(value)]
