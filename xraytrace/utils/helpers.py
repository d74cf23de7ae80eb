"""Helper functions for timestamps and id rendering."""

from __future__ import annotations

import time


def now_seconds() -> float:
    """
    Current wall-clock time as fractional epoch seconds.

    Returns:
        Seconds since the epoch, rounded to millisecond resolution
    """
    return round(time.time(), 3)


def epoch_seconds() -> int:
    """
    Current wall-clock time as whole epoch seconds.

    Returns:
        Seconds since the epoch, truncated
    """
    return int(time.time())


def format_hex(value: int, width: int) -> str:
    """
    Format an integer as fixed-width lowercase hex.

    Args:
        value: Non-negative integer
        width: Number of hex digits

    Returns:
        Zero-padded hex string
    """
    return format(value, f"0{width}x")

