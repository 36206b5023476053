"""Sanitization utilities."""

from .bounding import TRUNCATION_MARKER, bound_text_fields, truncate_text
from .text import redact_mapping, redact_sensitive_info

__all__ = [
    "TRUNCATION_MARKER",
    "bound_text_fields",
    "redact_mapping",
    "redact_sensitive_info",
    "truncate_text",
]
