"""Shared input validation guards for MCP tool handlers.

Each guard returns an error envelope string when the input is invalid, or
None when it is acceptable, so handlers can write ``if err := ...: return err``.
"""

from typing import Any, Mapping, Optional, Union

from common.errors import ErrorCode
from common.models.error_metadata import ErrorCategory
from mcp_server.utils.errors import tool_error_response

Number = Union[int, float]

MAX_QUERY_LENGTH = 100_000


def require_non_empty(value: Optional[str], param_name: str, tool_name: str) -> Optional[str]:
    """Validate that a string parameter is non-empty."""
    if not isinstance(value, str) or not value.strip():
        return tool_error_response(
            message=f'Required parameter "{param_name}" is missing for {tool_name}.',
            code=ErrorCode.MISSING_PARAMETER.value,
            category=ErrorCategory.INVALID_REQUEST,
        )
    return None


def validate_max_length(
    value: str, param_name: str, tool_name: str, max_length: int = MAX_QUERY_LENGTH
) -> Optional[str]:
    """Validate that a string parameter is at most ``max_length`` characters."""
    if len(value) > max_length:
        return tool_error_response(
            message=(
                f"Invalid {param_name} for {tool_name}. "
                f"Must be at most {max_length} characters."
            ),
            code=ErrorCode.QUERY_VALIDATION_ERROR.value,
            category=ErrorCategory.INVALID_REQUEST,
        )
    return None


def validate_range(
    value: Any,
    param_name: str,
    tool_name: str,
    *,
    min_val: Optional[Number] = None,
    max_val: Optional[Number] = None,
) -> Optional[str]:
    """Validate that a numeric parameter lies within ``min_val..max_val``."""
    is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
    too_low = is_number and min_val is not None and value < min_val
    too_high = is_number and max_val is not None and value > max_val
    if not is_number or too_low or too_high:
        if min_val is not None and max_val is not None:
            bound = f"between {min_val} and {max_val}"
        elif min_val is not None:
            bound = f">= {min_val}"
        else:
            bound = f"<= {max_val}"
        return tool_error_response(
            message=f"Invalid {param_name} for {tool_name}. Must be a number {bound}.",
            code=ErrorCode.QUERY_VALIDATION_ERROR.value,
            category=ErrorCategory.INVALID_REQUEST,
        )
    return None


def validate_choice(value: str, param_name: str, tool_name: str, choices) -> Optional[str]:
    """Validate that ``value`` is one of ``choices``."""
    if value not in choices:
        return tool_error_response(
            message=(
                f"Invalid {param_name} for {tool_name}. "
                f"Expected one of: {', '.join(choices)}."
            ),
            code=ErrorCode.QUERY_VALIDATION_ERROR.value,
            category=ErrorCategory.INVALID_REQUEST,
        )
    return None


def validate_mapping(value: Any, param_name: str, tool_name: str) -> Optional[str]:
    """Validate that ``value`` is a JSON object (or omitted)."""
    if value is not None and not isinstance(value, Mapping):
        return tool_error_response(
            message=f"Invalid {param_name} for {tool_name}. Must be an object.",
            code=ErrorCode.QUERY_VALIDATION_ERROR.value,
            category=ErrorCategory.INVALID_REQUEST,
        )
    return None
