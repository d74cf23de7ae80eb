"""Active trace context slot - backed by the OpenTelemetry context API."""

from contextvars import Token
from dataclasses import dataclass
from typing import Optional

from opentelemetry import context as context_api

from xraytrace.ids import SegmentId, TraceId

_CONTEXT_KEY = context_api.create_key("xraytrace-context")


@dataclass(frozen=True)
class Context:
    """What trace and what unit of work is currently active."""

    trace_id: TraceId
    segment_id: SegmentId
    parent_id: Optional[SegmentId] = None

    @classmethod
    def new_root(cls) -> "Context":
        return cls(trace_id=TraceId.new(), segment_id=SegmentId.new())

    def child(self) -> "Context":
        """Context for a unit of work nested under this one."""
        return Context(
            trace_id=self.trace_id,
            segment_id=SegmentId.new(),
            parent_id=self.segment_id,
        )


def get_current_context() -> Optional[Context]:
    """
    Return the context active on the calling thread, if any.

    Each thread (and each asyncio task) sees its own OpenTelemetry context,
    so the slot is never shared.
    """
    return context_api.get_value(_CONTEXT_KEY)


def push_context(ctx: Optional[Context]) -> Token:
    """
    Install a context as current.

    Returns:
        Token needed to restore the previous state
    """
    return context_api.attach(context_api.set_value(_CONTEXT_KEY, ctx))


def pop_context(token: Token) -> None:
    """
    Restore the previous context using the provided token.

    Args:
        token: Token returned by push_context()
    """
    context_api.detach(token)
