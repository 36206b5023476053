"""Shared observability helpers."""
