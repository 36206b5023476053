"""Translate T-SQL ``@name`` parameters into ODBC ``?`` markers."""

import re
from typing import Any, List, Mapping, Optional, Tuple

from common.sql.comments import block_comment_end, line_comment_end, quoted_end

PARAM_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def translate_named_params_to_odbc(
    sql: str, params: Optional[Mapping[str, Any]] = None
) -> Tuple[str, List[Any]]:
    """Rewrite ``@name`` references to ``?`` and return positional values.

    Only names present in ``params`` are rewritten, so local variables
    (``DECLARE @x``) and system functions (``@@ROWCOUNT``) pass through.
    References inside string literals, quoted identifiers and comments are
    left alone. A name referenced twice contributes its value twice.
    """
    params = dict(params or {})
    for name in params:
        if not isinstance(name, str) or not PARAM_NAME_PATTERN.fullmatch(name):
            raise ValueError(f"Invalid parameter name {name!r}; use letters, digits and '_'.")
    if not params:
        return sql, []

    out: List[str] = []
    values: List[Any] = []
    i = 0
    length = len(sql)
    while i < length:
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < length else ""

        if ch in ("'", '"', "["):
            end = quoted_end(sql, i)
            out.append(sql[i:end])
            i = end
            continue

        if ch == "-" and nxt == "-":
            end = line_comment_end(sql, i)
            out.append(sql[i:end])
            i = end
            continue

        if ch == "/" and nxt == "*":
            end = block_comment_end(sql, i)
            out.append(sql[i:end])
            i = end
            continue

        if ch == "@":
            if nxt == "@":
                end = i + 2
                while end < length and (sql[end].isalnum() or sql[end] == "_"):
                    end += 1
                out.append(sql[i:end])
                i = end
                continue
            match = PARAM_NAME_PATTERN.match(sql, i + 1)
            if match and match.group(0) in params:
                out.append("?")
                values.append(params[match.group(0)])
                i = match.end()
                continue
            if match:
                out.append(sql[i : match.end()])
                i = match.end()
                continue

        out.append(ch)
        i += 1

    return "".join(out), values

