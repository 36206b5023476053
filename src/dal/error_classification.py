from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_bool

logger = logging.getLogger(__name__)

PROVIDER = "mssql"

TIMEOUT_SQLSTATES = frozenset({"HYT00", "HYT01"})

_SQLSTATE_RE = re.compile(r"^[0-9A-Z]{5}$")


@dataclass(frozen=True)
class ErrorClassification:
    """Structured driver error classification."""

    category: str
    sqlstate: Optional[str]
    is_retryable: bool


def extract_sqlstate(exc: BaseException) -> Optional[str]:
    """Return the SQLSTATE carried by a pyodbc error, if any.

    pyodbc raises ``Error(sqlstate, message)``; other drivers and wrapped
    errors may expose a ``sqlstate`` attribute instead.
    """
    explicit = getattr(exc, "sqlstate", None)
    if isinstance(explicit, str) and _SQLSTATE_RE.match(explicit):
        return explicit
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], str) and _SQLSTATE_RE.match(args[0]):
        return args[0]
    return None


def extract_driver_message(exc: BaseException) -> str:
    """Return the driver message without the SQLSTATE tuple wrapper pyodbc adds."""
    args = getattr(exc, "args", ())
    if len(args) >= 2 and extract_sqlstate(exc) == args[0] and isinstance(args[1], str):
        return args[1]
    return str(exc)


def is_timeout_error(exc: BaseException) -> bool:
    """Return True for driver timeouts: SQLSTATE first, message text second."""
    if isinstance(exc, TimeoutError) or extract_sqlstate(exc) in TIMEOUT_SQLSTATES:
        return True
    return "timeout" in str(exc).lower()


def classify_error(exc: BaseException) -> str:
    """Classify an error into a tool-facing category."""
    return classify_error_info(exc).category


def classify_error_info(exc: BaseException) -> ErrorClassification:
    """Classify a driver error, preferring SQLSTATE over message fragments."""
    sqlstate = extract_sqlstate(exc)
    message = str(exc).lower()

    if sqlstate:
        if sqlstate in TIMEOUT_SQLSTATES:
            return _classification("timeout", sqlstate)
        if sqlstate.startswith("08"):
            return _classification("connectivity", sqlstate)
        if sqlstate == "28000":
            return _classification("auth", sqlstate)
        if sqlstate == "40001":
            return _classification("deadlock", sqlstate)
        if sqlstate.startswith("23"):
            return _classification("constraint", sqlstate)
        if sqlstate.startswith("42"):
            if _matches_any(message, ("permission was denied", "permission denied")):
                return _classification("auth", sqlstate)
            return _classification("syntax", sqlstate)

    if isinstance(exc, TimeoutError) or _matches_any(message, ("timeout", "timed out")):
        return _classification("timeout", sqlstate)
    if isinstance(exc, ConnectionError) or _matches_any(
        message,
        (
            "could not open a connection",
            "communication link failure",
            "connection refused",
            "connection reset",
            "network-related",
            "tcp provider",
        ),
    ):
        return _classification("connectivity", sqlstate)
    if _matches_any(
        message, ("login failed", "permission was denied", "permission denied", "access denied")
    ):
        return _classification("auth", sqlstate)
    if _matches_any(message, ("deadlock victim", "deadlocked")):
        return _classification("deadlock", sqlstate)
    if _matches_any(
        message, ("violation of primary key", "violation of unique key", "foreign key constraint")
    ):
        return _classification("constraint", sqlstate)
    if _matches_any(message, ("incorrect syntax", "invalid object name", "invalid column name")):
        return _classification("syntax", sqlstate)

    return _classification("unknown", sqlstate)


RECOVERY_HINTS: dict[str, str] = {
    "timeout": "Consider reducing query complexity or increasing QUERY_TIMEOUT",
    "connectivity": "Check network configuration and SQL Server availability",
    "auth": "Verify credentials and permission grants for the requested operation",
    "syntax": "Review SQL syntax; the query may reference invalid identifiers",
    "deadlock": "Retry the statement; it was chosen as a deadlock victim",
    "constraint": "The statement violates a table constraint; review the supplied values",
    "unknown": "Inspect error details for root cause",
}


def emit_classified_error(operation: str, category: str, exc: BaseException) -> None:
    """Emit structured telemetry for classified errors when enabled.

    Sets error.classification.* attributes on the current span.
    """
    if not get_env_bool("DAL_CLASSIFIED_ERROR_TELEMETRY", True):
        return

    recovery_hint = RECOVERY_HINTS.get(category, RECOVERY_HINTS["unknown"])
    error_info = classify_error_info(exc)

    from opentelemetry import trace

    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute("error.classification.category", category)
        span.set_attribute("error.classification.provider", PROVIDER)
        span.set_attribute("error.classification.operation", operation)
        span.set_attribute("error.classification.is_retryable", error_info.is_retryable)
        if error_info.sqlstate:
            span.set_attribute("error.classification.sqlstate", error_info.sqlstate)

    logger.error(
        "dal_error_classified",
        extra={
            "event": "dal_error_classified",
            "provider": PROVIDER,
            "operation": operation,
            "error_category": category,
            "error_type": exc.__class__.__name__,
            "sqlstate": error_info.sqlstate,
            "is_retryable": error_info.is_retryable,
            "recovery_hint": recovery_hint,
        },
    )


def _matches_any(text: str, fragments: tuple[str, ...]) -> bool:
    return any(fragment in text for fragment in fragments)


def _classification(category: str, sqlstate: Optional[str]) -> ErrorClassification:
    retryable = category in {"timeout", "connectivity", "deadlock"}
    return ErrorClassification(category=category, sqlstate=sqlstate, is_retryable=retryable)
