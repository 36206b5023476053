"""Utility functions for tool response envelopes."""

import time
from typing import Any, Optional

from common.models.tool_envelopes import GenericToolMetadata, ToolResponseEnvelope


def elapsed_ms(start_time: float) -> float:
    """Milliseconds since ``start_time`` (a ``time.monotonic()`` reading)."""
    return round((time.monotonic() - start_time) * 1000, 2)


def tool_success_response(
    result: Any,
    start_time: Optional[float] = None,
    **metadata: Any,
) -> str:
    """Construct a standardized success response envelope."""
    if start_time is not None:
        metadata.setdefault("execution_time_ms", elapsed_ms(start_time))
    envelope = ToolResponseEnvelope(
        result=result,
        metadata=GenericToolMetadata(**metadata),
    )
    return envelope.model_dump_json(exclude_none=True)
