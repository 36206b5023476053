"""Shared error construction helpers for MCP tool handlers.

Provides a consistent error envelope so the agent never has to special-case
error parsing across different tools.
"""

import logging
from typing import Optional

from common.errors import (
    DatabaseError,
    ErrorCode,
    McpError,
    category_for_error_code,
    sanitize_error_message,
    sanitize_exception,
)
from common.models.error_metadata import ErrorCategory, ToolError
from common.models.tool_envelopes import GenericToolMetadata, ToolResponseEnvelope
from dal.error_classification import RECOVERY_HINTS, classify_error_info

logger = logging.getLogger(__name__)

_RETRYABLE_CATEGORIES = frozenset(
    {ErrorCategory.TIMEOUT, ErrorCategory.CONNECTIVITY, ErrorCategory.DEADLOCK}
)


def build_error_metadata(
    *,
    message: str,
    category: ErrorCategory,
    code: Optional[str] = None,
    retryable: Optional[bool] = None,
    sql_state: Optional[str] = None,
    hint: Optional[str] = None,
) -> ToolError:
    """Build bounded, redacted ToolError."""
    safe_hint = sanitize_error_message(hint, fallback="") if hint else None
    return ToolError(
        category=category,
        code=code or ErrorCode.INTERNAL_ERROR.value,
        message=sanitize_error_message(message),
        retryable=category in _RETRYABLE_CATEGORIES if retryable is None else retryable,
        sql_state=sql_state,
        hint=safe_hint or None,
    )


def tool_error_response(
    *,
    message: str,
    code: str,
    category: ErrorCategory = ErrorCategory.INVALID_REQUEST,
    retryable: Optional[bool] = None,
    sql_state: Optional[str] = None,
    hint: Optional[str] = None,
    execution_time_ms: Optional[float] = None,
) -> str:
    """Construct a structured JSON error response for an MCP tool.

    Returns a ToolResponseEnvelope JSON string with a populated ``error``
    field, ensuring the agent receives a uniform error shape regardless
    of which tool emitted it.
    """
    envelope = ToolResponseEnvelope(
        result=None,
        metadata=GenericToolMetadata(execution_time_ms=execution_time_ms),
        error=build_error_metadata(
            message=message,
            category=category,
            code=code,
            retryable=retryable,
            sql_state=sql_state,
            hint=hint,
        ),
    )
    return envelope.model_dump_json(exclude_none=True)


def _database_category(exc: DatabaseError) -> ErrorCategory:
    category = classify_error_info(exc).category
    try:
        return ErrorCategory(category)
    except ValueError:
        return ErrorCategory.UNKNOWN


def error_response_from_exception(
    exc: BaseException,
    tool_name: str,
    execution_time_ms: Optional[float] = None,
) -> str:
    """Map any exception raised inside a tool handler to an error envelope."""
    if isinstance(exc, McpError):
        category = category_for_error_code(exc.code)
        sql_state = None
        hint = None
        if isinstance(exc, DatabaseError):
            category = _database_category(exc)
            sql_state = exc.sqlstate
            hint = RECOVERY_HINTS.get(category.value)
        logger.warning(
            "Tool request failed",
            extra={
                "tool_name": tool_name,
                "error_code": exc.code.value,
                "error_category": category.value,
            },
        )
        return tool_error_response(
            message=exc.message,
            code=exc.code.value,
            category=category,
            sql_state=sql_state,
            hint=hint,
            execution_time_ms=execution_time_ms,
        )

    logger.error(
        "Unhandled tool error",
        extra={"tool_name": tool_name, "error_type": exc.__class__.__name__},
        exc_info=exc,
    )
    return tool_error_response(
        message=sanitize_exception(exc, fallback="Internal server error"),
        code=ErrorCode.INTERNAL_ERROR.value,
        category=ErrorCategory.INTERNAL,
        execution_time_ms=execution_time_ms,
    )
