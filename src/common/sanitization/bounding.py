"""Payload bounding utilities."""

from typing import Any, Dict, Iterable, List, Optional

TRUNCATION_MARKER = "... [truncated]"


def truncate_text(value: Optional[str], max_chars: int) -> Optional[str]:
    """Bound ``value`` to ``max_chars`` characters, appending a marker when cut."""
    if value is None or len(value) <= max_chars:
        return value
    return value[:max_chars] + TRUNCATION_MARKER


def bound_text_fields(
    rows: Iterable[Dict[str, Any]], limits: Dict[str, int]
) -> List[Dict[str, Any]]:
    """Return copies of ``rows`` with the named text columns truncated."""
    bounded = []
    for row in rows:
        row = dict(row)
        for key, max_chars in limits.items():
            if isinstance(row.get(key), str):
                row[key] = truncate_text(row[key], max_chars)
        bounded.append(row)
    return bounded
