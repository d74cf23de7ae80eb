"""Context utilities for xraytrace."""

from xraytrace.context.context import (
    Context,
    get_current_context,
    pop_context,
    push_context,
)
from xraytrace.context.header import (
    TRACE_HEADER_NAME,
    Header,
    SamplingDecision,
    parse_header,
    render_header,
)

__all__ = [
    "Context",
    "get_current_context",
    "push_context",
    "pop_context",
    "TRACE_HEADER_NAME",
    "Header",
    "SamplingDecision",
    "parse_header",
    "render_header",
]
