"""Shared validation helpers."""

from __future__ import annotations

from .errors import UsageError


def validate_call_count(count: int) -> int:
    """Ensure *count* is usable as an expected number of calls."""
    if isinstance(count, bool) or not isinstance(count, int):
        msg = f"call count must be an integer, got {type(count).__name__}"
        raise UsageError(msg)

    if count < 0:
        msg = f"call count must be >= 0, got {count}"
        raise UsageError(msg)
    return count
