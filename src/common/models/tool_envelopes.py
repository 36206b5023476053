"""Typed envelope models for tool IO."""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator

from common.models.error_metadata import ToolError

# Current schema version for future-proofing
CURRENT_SCHEMA_VERSION = "1.0"
DEFAULT_PROVIDER = "mssql"
T = TypeVar("T")


class GenericToolMetadata(BaseModel):
    """Generic metadata for tool responses."""

    provider: str = Field(DEFAULT_PROVIDER, description="Database or system provider")
    execution_time_ms: Optional[float] = None
    read_only: Optional[bool] = Field(None, description="Policy the server is running under")
    truncated: Optional[bool] = None
    returned_count: Optional[int] = None
    total_count: Optional[int] = None
    limit_applied: Optional[int] = None

    @model_validator(mode="after")
    def sync_truncation(self) -> "GenericToolMetadata":
        """Derive ``truncated`` from the counts when it was not given."""
        if (
            self.truncated is None
            and self.returned_count is not None
            and self.total_count is not None
        ):
            self.truncated = self.total_count > self.returned_count
        return self


class ToolResponseEnvelope(BaseModel, Generic[T]):
    """Standardized envelope for tool responses."""

    # Binary columns (varbinary, rowversion) are emitted as base64 text.
    model_config = ConfigDict(ser_json_bytes="base64")

    schema_version: str = Field(default=CURRENT_SCHEMA_VERSION)
    result: Optional[T] = Field(default=None, description="The tool's main output payload")
    metadata: GenericToolMetadata = Field(default_factory=GenericToolMetadata)
    error: Optional[ToolError] = None

    def is_error(self) -> bool:
        """Check if the envelope represents an error."""
        return self.error is not None
