"""Utility functions for xraytrace."""

from xraytrace.utils.helpers import (
    now_seconds,
    epoch_seconds,
    format_hex,
)

__all__ = [
    "now_seconds",
    "epoch_seconds",
    "format_hex",
]
