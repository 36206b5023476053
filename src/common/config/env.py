"""Typed environment variable parsing helpers."""

import os
from typing import Optional


def get_env_str(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Get an environment variable as a string.

    Empty values are treated as unset so `.env` placeholders like `SQL_USER=`
    fall back to the default.
    """
    value = os.getenv(name)
    if value is None or value == "":
        if required:
            raise KeyError(f"Environment variable '{name}' is required but not set.")
        return default
    return value


def get_env_int(name: str, default: Optional[int] = None, required: bool = False) -> Optional[int]:
    """Get an environment variable as an integer."""
    value = get_env_str(name, required=required)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got '{value}'.")


def get_env_bool(
    name: str, default: Optional[bool] = None, required: bool = False
) -> Optional[bool]:
    """Get an environment variable as a boolean.

    Truthy: true, 1, yes, on
    Falsey: false, 0, no, off
    """
    value = get_env_str(name, required=required)
    if value is None:
        return default

    val_lower = value.strip().lower()
    if val_lower in ("true", "1", "yes", "on"):
        return True
    if val_lower in ("false", "0", "no", "off"):
        return False

    raise ValueError(f"Environment variable '{name}' must be a boolean, got '{value}'.")
