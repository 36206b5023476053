"""Parameter bind-type inference for SQL Server.

Every value reaches the driver as a typed parameter; nothing is rendered
into SQL text.
"""

import math
from enum import Enum
from typing import Any, List, Tuple, Union

SqlParamValue = Union[str, int, float, bool, None]


class BindType(str, Enum):
    """Closed set of engine bind types used for parameters."""

    NVARCHAR = "NVARCHAR"
    BIGINT = "BIGINT"
    FLOAT = "FLOAT"
    BIT = "BIT"


def bind_type(value: Any) -> BindType:
    """Return the engine bind type for a parameter value.

    Raises:
        TypeError: for values outside ``str | int | float | bool | None``.
    """
    if value is None:
        return BindType.NVARCHAR
    # bool is a subclass of int; check it first.
    if isinstance(value, bool):
        return BindType.BIT
    if isinstance(value, str):
        return BindType.NVARCHAR
    if isinstance(value, int):
        return BindType.BIGINT
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return BindType.BIGINT
        return BindType.FLOAT
    raise TypeError(
        f"Unsupported parameter type {type(value).__name__}; "
        "expected str, int, float, bool or None."
    )


def coerce_bind_value(value: SqlParamValue) -> SqlParamValue:
    """Return the value in the Python type matching its bind type."""
    if bind_type(value) is BindType.BIGINT and isinstance(value, float):
        return int(value)
    return value


def bind_values(values: List[SqlParamValue]) -> List[Tuple[BindType, SqlParamValue]]:
    """Pair each positional value with its bind type (fails fast on bad types)."""
    return [(bind_type(value), coerce_bind_value(value)) for value in values]
