"""Structured error metadata models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorCategory(str, Enum):
    """Canonical error categories."""

    AUTH = "auth"
    INVALID_REQUEST = "invalid_request"
    TIMEOUT = "timeout"
    INTERNAL = "internal"
    CONNECTIVITY = "connectivity"
    SYNTAX = "syntax"
    DEADLOCK = "deadlock"
    CONSTRAINT = "constraint"
    UNKNOWN = "unknown"

    # MCP / Extension categories
    MUTATION_BLOCKED = "mutation_blocked"


class ToolError(BaseModel):
    """Canonical tool error contract."""

    model_config = ConfigDict(extra="forbid")

    category: ErrorCategory = Field(..., description="Provider-agnostic error category")
    code: Optional[str] = Field(None, description="Stable machine-readable error code")
    message: str = Field(
        ..., max_length=2048, description="Safe user-facing error message (redacted/bounded)"
    )
    retryable: bool = Field(False, description="Whether the error is retryable")
    provider: Optional[str] = Field("mssql", description="Originating provider/system")
    sql_state: Optional[str] = Field(None, description="Driver SQLSTATE when one was reported")
    details_safe: Optional[dict[str, Any]] = Field(
        None, description="Safe details that can be surfaced to users/agent"
    )
    hint: Optional[str] = Field(
        None, max_length=2048, description="Recovery hint or suggestion"
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses/telemetry."""
        return self.model_dump(exclude_none=True)
