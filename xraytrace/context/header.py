"""X-Amzn-Trace-Id propagation header parsing and rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from xraytrace.errors import HeaderParseError

if TYPE_CHECKING:
    from xraytrace.context.context import Context

TRACE_HEADER_NAME = "X-Amzn-Trace-Id"

ROOT_KEY = "Root"
PARENT_KEY = "Parent"
SAMPLED_KEY = "Sampled"
SELF_KEY = "Self"


class SamplingDecision(Enum):
    SAMPLED = "1"
    NOT_SAMPLED = "0"
    # decision is left to the downstream service
    REQUESTED = "?"
    UNKNOWN = ""

    @classmethod
    def from_value(cls, value: str) -> "SamplingDecision":
        for decision in cls:
            if decision is not cls.UNKNOWN and decision.value == value:
                return decision
        return cls.UNKNOWN


@dataclass(frozen=True)
class Header:
    """Parsed representation of an inbound trace header."""

    trace_id: str = ""
    parent_id: Optional[str] = None
    sampling_decision: SamplingDecision = SamplingDecision.UNKNOWN
    additional_data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_context(
        cls,
        ctx: "Context",
        sampling_decision: SamplingDecision = SamplingDecision.UNKNOWN,
    ) -> "Header":
        """Header to send downstream so the callee nests under ``ctx``."""
        return cls(
            trace_id=str(ctx.trace_id),
            parent_id=str(ctx.segment_id),
            sampling_decision=sampling_decision,
        )

    def render(self) -> str:
        return render_header(self)

    def __str__(self) -> str:
        return self.render()


def parse_header(text: str) -> Header:
    """
    Parse a trace header value such as
    ``Root=1-5759e988-bd862e3fe1be46a994272793;Parent=53995c3f42cd8ad8;Sampled=1``.

    Field order does not matter. ``Self`` entries are dropped, unknown keys
    are kept in ``additional_data``. A missing ``Root`` leaves ``trace_id``
    empty; callers decide what to do about it.

    Raises:
        HeaderParseError: if any entry has no ``=``
    """
    trace_id = ""
    parent_id = None
    sampling_decision = SamplingDecision.UNKNOWN
    additional_data: Dict[str, str] = {}

    for item in text.split(";"):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise HeaderParseError(
                "invalid key=value: no `=` found",
                details={"entry": item, "header": text},
            )
        key, value = item.split("=", 1)
        if key == ROOT_KEY:
            trace_id = value
        elif key == PARENT_KEY:
            parent_id = value
        elif key == SAMPLED_KEY:
            sampling_decision = SamplingDecision.from_value(value)
        elif key == SELF_KEY:
            continue
        else:
            additional_data[key] = value

    return Header(
        trace_id=trace_id,
        parent_id=parent_id,
        sampling_decision=sampling_decision,
        additional_data=additional_data,
    )


def render_header(header: Header) -> str:
    """Format a Header back into its semicolon-delimited wire form."""
    items = []
    if header.trace_id:
        items.append(f"{ROOT_KEY}={header.trace_id}")
    if header.parent_id:
        items.append(f"{PARENT_KEY}={header.parent_id}")
    if header.sampling_decision is not SamplingDecision.UNKNOWN:
        items.append(f"{SAMPLED_KEY}={header.sampling_decision.value}")
    for key, value in header.additional_data.items():
        items.append(f"{key}={value}")
    return ";".join(items)
