"""T-SQL lexical helpers: quoted spans, comments and comment stripping."""

from __future__ import annotations

_CLOSING_QUOTE = {"'": "'", '"': '"', "[": "]"}


def quoted_end(sql: str, start: int) -> int:
    """Return the index just past the quoted span opening at ``start``.

    ``''``, ``""`` and ``]]`` are escapes, not terminators. An unterminated
    span runs to the end of the text.
    """
    closing = _CLOSING_QUOTE[sql[start]]
    i = start + 1
    while i < len(sql):
        if sql[i] == closing:
            if sql[i + 1 : i + 2] == closing:
                i += 2
                continue
            return i + 1
        i += 1
    return len(sql)


def line_comment_end(sql: str, start: int) -> int:
    """Return the index of the newline ending the ``--`` comment at ``start``."""
    end = sql.find("\n", start)
    return len(sql) if end == -1 else end


def block_comment_end(sql: str, start: int) -> int:
    """Return the index just past the ``/* */`` comment at ``start``; these nest."""
    depth = 0
    i = start
    while i < len(sql):
        pair = sql[i : i + 2]
        if pair == "/*":
            depth += 1
            i += 2
        elif pair == "*/":
            depth -= 1
            i += 2
            if depth == 0:
                return i
        else:
            i += 1
    return len(sql)


def strip_sql_comments(sql: str) -> str:
    """Strip T-SQL line/block comments while preserving quoted text.

    Comment markers inside ``'...'`` strings, ``"..."`` identifiers and
    ``[...]`` identifiers are kept. Block comments nest, as they do in T-SQL.
    Each comment is replaced by whitespace so adjacent tokens stay separated;
    newlines inside a block comment survive.
    """
    if not isinstance(sql, str) or not sql:
        return ""

    out: list[str] = []
    i = 0
    while i < len(sql):
        ch = sql[i]
        pair = sql[i : i + 2]

        if ch in _CLOSING_QUOTE:
            end = quoted_end(sql, i)
            out.append(sql[i:end])
        elif pair == "--":
            end = line_comment_end(sql, i)
            out.append(" ")
        elif pair == "/*":
            end = block_comment_end(sql, i)
            out.append("\n" * sql.count("\n", i, end) + " ")
        else:
            end = i + 1
            out.append(ch)
        i = end

    return "".join(out)
