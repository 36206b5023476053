"""Sanitization helpers for user-facing error surfaces."""

from __future__ import annotations

import re
from typing import Any

from common.sanitization.text import redact_sensitive_info

MAX_PUBLIC_ERROR_LENGTH = 2048

_LOGIN_FAILED_RE = re.compile(r"Login failed for user '[^']*'")
_PASSWORD_FRAGMENT_RE = re.compile(r"password[^,]*", flags=re.IGNORECASE)


def sanitize_error_message(message: Any, *, fallback: str = "Request failed.") -> str:
    """Return error text with credential-shaped substrings replaced by fixed markers."""
    raw_text = "" if message is None else str(message)
    safe_text = redact_sensitive_info(raw_text.strip())
    safe_text = _LOGIN_FAILED_RE.sub("Login failed for user '***'", safe_text)
    safe_text = _PASSWORD_FRAGMENT_RE.sub("password=***", safe_text)
    if not safe_text:
        safe_text = (fallback or "Request failed.").strip()
    return safe_text[:MAX_PUBLIC_ERROR_LENGTH]


def sanitize_exception(exc: BaseException, *, fallback: str = "Request failed.") -> str:
    """Sanitize an exception for outward-facing tool contracts."""
    return sanitize_error_message(str(exc), fallback=fallback)
