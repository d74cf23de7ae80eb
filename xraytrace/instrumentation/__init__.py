"""Instrumentation helpers."""

from xraytrace.instrumentation.decorator import capture

__all__ = ["capture"]
