"""Tests for typed environment variable helpers."""

import pytest

from common.config.env import get_env_bool, get_env_int, get_env_str


def test_empty_string_treated_as_unset(monkeypatch):
    """Blank .env placeholders fall back to the default."""
    monkeypatch.setenv("SQL_USER", "")
    assert get_env_str("SQL_USER", "fallback") == "fallback"


def test_required_missing_raises(monkeypatch):
    """Required variables raise KeyError when absent."""
    monkeypatch.delenv("SQL_USER", raising=False)
    with pytest.raises(KeyError):
        get_env_str("SQL_USER", required=True)


def test_int_parsing(monkeypatch):
    """Integers are parsed with surrounding whitespace tolerated."""
    monkeypatch.setenv("MAX_ROWS", " 250 ")
    assert get_env_int("MAX_ROWS") == 250


def test_int_parsing_rejects_text(monkeypatch):
    """Non-numeric values raise ValueError naming the variable."""
    monkeypatch.setenv("MAX_ROWS", "many")
    with pytest.raises(ValueError, match="MAX_ROWS"):
        get_env_int("MAX_ROWS")


@pytest.mark.parametrize(
    "raw,expected",
    [("true", True), ("1", True), ("ON", True), ("no", False), ("0", False)],
)
def test_bool_parsing(monkeypatch, raw, expected):
    """Common boolean spellings are understood."""
    monkeypatch.setenv("SQL_ENCRYPT", raw)
    assert get_env_bool("SQL_ENCRYPT") is expected


def test_bool_parsing_rejects_unknown(monkeypatch):
    """Unrecognized boolean text raises ValueError."""
    monkeypatch.setenv("SQL_ENCRYPT", "sometimes")
    with pytest.raises(ValueError):
        get_env_bool("SQL_ENCRYPT")
