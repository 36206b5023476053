from typing import Optional


def clamp_row_limit(requested: Optional[int], ceiling: int, default: int = 100) -> int:
    """Return the requested row limit bounded to ``1..ceiling``."""
    value = default if requested is None else int(requested)
    return max(1, min(value, ceiling))


def cap_rows_with_metadata(rows: list, max_rows: Optional[int]) -> tuple[list, bool]:
    """Return capped rows along with a truncation flag; ``None`` means no cap."""
    if max_rows is not None and len(rows) > max_rows:
        return rows[:max_rows], True
    return rows, False
