"""Logging setup for the stdio MCP server.

stdout carries the MCP protocol, so every record goes to stderr.
"""

import logging
import sys
from typing import Optional

from common.sanitization.text import REDACTED, is_sensitive_key, redact_mapping

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def resolve_log_level(name: Optional[str]) -> int:
    """Map a LOG_LEVEL value (debug/info/warn/error) to a logging level."""
    return _LEVELS.get((name or "info").strip().lower(), logging.INFO)


class RedactingFilter(logging.Filter):
    """Mask credential-bearing ``extra`` fields before any handler formats them."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in list(vars(record).items()):
            if key in _RESERVED_ATTRS:
                continue
            if is_sensitive_key(key):
                setattr(record, key, REDACTED)
            elif isinstance(value, dict):
                setattr(record, key, redact_mapping(value))
        return True


def configure_logging(level: Optional[str] = "info") -> logging.Handler:
    """Install a single redacting stderr handler on the root logger."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RedactingFilter())
    logging.basicConfig(level=resolve_log_level(level), handlers=[handler], force=True)
    return handler
