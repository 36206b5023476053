"""Read-only SQL gate for the query target.

This is a lexical gate, not a parser: an allowlisted leading keyword, then a
word-bounded keyword blocklist, then a handful of bypass patterns that a
single-keyword scan cannot see. All checks run on comment-stripped,
whitespace-collapsed, uppercased text.
"""

import re
from dataclasses import dataclass
from typing import Optional

from common.sql.comments import strip_sql_comments

BLOCKED_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "EXEC",
    "EXECUTE",
    "MERGE",
    "GRANT",
    "REVOKE",
    "DENY",
    "BACKUP",
    "RESTORE",
    "BULK",
    "OPENROWSET",
    "OPENDATASOURCE",
    "XP_",
    "SP_CONFIGURE",
    "SP_ADDLOGIN",
    "SP_DROPLOGIN",
    "DBCC",
    "SHUTDOWN",
    "KILL",
)

# Keywords ending in "_" are procedure-name prefixes (xp_cmdshell, xp_dirtree, ...).
_BLOCKED_KEYWORD_PATTERNS = tuple(
    (
        keyword,
        re.compile(rf"\b{re.escape(keyword)}\w*" if keyword.endswith("_") else rf"\b{keyword}\b"),
    )
    for keyword in BLOCKED_KEYWORDS
)

_ALLOWED_START_RE = re.compile(r"^(?:SELECT\b|WITH\b|SET SHOWPLAN)")

_BYPASS_PATTERNS = (
    (
        re.compile(r";\s*(INSERT|UPDATE|DELETE|DROP|ALTER|CREATE|TRUNCATE|EXEC)"),
        "Stacked query with write operation",
    ),
    (re.compile(r"\bINTO\b"), "SELECT INTO creates tables"),
    (re.compile(r"\bFOR\s+(UPDATE|DELETE)\b"), "FOR UPDATE/DELETE is not allowed"),
    (re.compile(r"\bOPENQUERY\s*\("), "OPENQUERY is not allowed"),
)

_WRITE_PREFIXES = ("INSERT", "UPDATE", "DELETE", "MERGE")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of a read-only validation attempt."""

    valid: bool
    query_type: str
    reason: Optional[str] = None


def normalize_sql(sql: str) -> str:
    """Strip comments, collapse whitespace, trim and uppercase."""
    return _WHITESPACE_RE.sub(" ", strip_sql_comments(sql)).strip().upper()


def find_blocked_keyword(normalized_sql: str) -> Optional[str]:
    """Return the first blocked keyword present at a word boundary."""
    for keyword, pattern in _BLOCKED_KEYWORD_PATTERNS:
        if pattern.search(normalized_sql):
            return keyword
    return None


def find_bypass_pattern(normalized_sql: str) -> Optional[str]:
    """Return the description of the first matching bypass pattern."""
    for pattern, description in _BYPASS_PATTERNS:
        if pattern.search(normalized_sql):
            return description
    return None


def validate_read_only_query(sql: str) -> ValidationVerdict:
    """Decide whether ``sql`` may run under the read-only policy.

    Never raises; malformed or non-string input is reported as empty.
    """
    normalized = normalize_sql(sql)

    if not normalized:
        return ValidationVerdict(valid=False, reason="Query is empty", query_type="EMPTY")

    if not _ALLOWED_START_RE.match(normalized):
        first_word = normalized.split(" ", 1)[0]
        return ValidationVerdict(
            valid=False,
            reason=f"Query must start with SELECT or WITH (CTE). Found: {first_word}",
            query_type=first_word,
        )

    blocked_keyword = find_blocked_keyword(normalized)
    if blocked_keyword:
        return ValidationVerdict(
            valid=False,
            reason=f'Keyword "{blocked_keyword}" is not allowed in READONLY mode',
            query_type=blocked_keyword,
        )

    bypass = find_bypass_pattern(normalized)
    if bypass:
        return ValidationVerdict(
            valid=False,
            reason=f"Query contains blocked pattern: {bypass}",
            query_type="BLOCKED_PATTERN",
        )

    return ValidationVerdict(valid=True, query_type=get_query_type(sql))


def is_write_operation(sql: str) -> bool:
    """Return True when the statement starts with a data-modification keyword."""
    normalized = normalize_sql(sql)
    return any(re.match(rf"{keyword}\b", normalized) for keyword in _WRITE_PREFIXES)


def get_query_type(sql: str) -> str:
    """Return the statement category implied by the leading keyword."""
    normalized = normalize_sql(sql)
    if not normalized:
        return "EMPTY"
    if normalized.startswith("WITH"):
        return "CTE"
    if normalized.startswith("SET SHOWPLAN"):
        return "SHOWPLAN"
    return normalized.split(" ", 1)[0]
