"""Compatibility helpers for older Python versions."""

from __future__ import annotations

import datetime
import sys

if sys.version_info < (3, 11):
    # Python 3.10 only parses the output of isoformat(), not e.g. a "Z" suffix.
    from backports.datetime_fromisoformat import MonkeyPatch

    MonkeyPatch.patch_fromisoformat()


def parse_timestamp(value: str) -> datetime.datetime:
    """Parse an ISO-8601 timestamp.

    Args:
        value: The timestamp, e.g. ``2024-01-01T00:00:00Z``.

    Returns:
        The parsed datetime.

    Raises:
        TypeError: If ``value`` is not a string.
    """
    if not isinstance(value, str):
        msg = f"expected a string, got {type(value).__name__}"
        raise TypeError(msg)
    return datetime.datetime.fromisoformat(value)


__all__ = [
    "parse_timestamp",
]
