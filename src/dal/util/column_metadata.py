"""Helpers for building column metadata payloads."""

from __future__ import annotations

from typing import Any, List, Optional


def build_column_meta(name: Optional[str], type_name: str) -> dict:
    """Return a normalized column metadata payload."""
    return {"name": name, "type": type_name}


def _type_name(type_code: Any) -> str:
    if isinstance(type_code, type):
        return type_code.__name__
    if isinstance(type_code, str) and type_code:
        return type_code
    return "unknown"


def columns_from_cursor_description(description: Optional[list]) -> List[dict]:
    """Build column metadata from DB-API cursor description tuples.

    pyodbc reports the Python type of each column as the type code.
    """
    columns: List[dict] = []
    for entry in description or []:
        if isinstance(entry, (list, tuple)) and entry:
            name = entry[0]
            type_code = entry[1] if len(entry) > 1 else None
        else:
            name = getattr(entry, "name", None)
            type_code = getattr(entry, "type_code", None)
        columns.append(build_column_meta(name, _type_name(type_code)))
    return columns
