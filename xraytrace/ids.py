"""Trace and segment identifiers.

Generated ids come from :class:`XRayIdGenerator`, an OpenTelemetry
``IdGenerator`` whose integers follow the X-Ray layout: the high 32 bits of a
trace id hold the epoch second it was created in, the remaining 96 bits are
random. Received ids are kept verbatim as opaque strings.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from typing import Optional

from opentelemetry.sdk.trace.id_generator import IdGenerator
from opentelemetry.trace import INVALID_SPAN_ID

from xraytrace.errors import IdentifierParseError
from xraytrace.utils.helpers import epoch_seconds, format_hex

TRACE_ID_VERSION = "1"

_RANDOM_BITS = 96
_RANDOM_MASK = (1 << _RANDOM_BITS) - 1

# Anything that could not survive a round-trip through the trace header.
_OPAQUE_ID = re.compile(r"^[^\s;=]+$")


class XRayIdGenerator(IdGenerator):
    """Generates X-Ray compatible ids from a cryptographically-sound source."""

    def generate_span_id(self) -> int:
        span_id = INVALID_SPAN_ID
        while span_id == INVALID_SPAN_ID:
            span_id = int.from_bytes(secrets.token_bytes(8), "big")
        return span_id

    def generate_trace_id(self) -> int:
        entropy = int.from_bytes(secrets.token_bytes(12), "big")
        return (epoch_seconds() << _RANDOM_BITS) | entropy


_default_generator = XRayIdGenerator()


def _check_opaque(kind: str, text) -> str:
    if not isinstance(text, str) or not _OPAQUE_ID.match(text):
        raise IdentifierParseError(
            f"invalid {kind}",
            details={"value": repr(text)},
        )
    return text


@dataclass(frozen=True)
class TraceId:
    """
    Identifies one end-to-end trace.

    ``epoch`` is only set on generated ids; received ids carry nothing but
    their text.
    """

    text: str
    epoch: Optional[int] = field(default=None, compare=False)

    @classmethod
    def new(cls, generator: Optional[IdGenerator] = None) -> "TraceId":
        raw = (generator or _default_generator).generate_trace_id()
        epoch = raw >> _RANDOM_BITS
        text = f"{TRACE_ID_VERSION}-{format_hex(epoch, 8)}-{format_hex(raw & _RANDOM_MASK, 24)}"
        return cls(text, epoch)

    @classmethod
    def from_string(cls, text: str) -> "TraceId":
        """Wrap a trace id received from upstream without reformatting it."""
        return cls(_check_opaque("trace id", text))

    @property
    def is_generated(self) -> bool:
        return self.epoch is not None

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class SegmentId:
    """Identifies one unit of work within a trace."""

    text: str
    generated: bool = field(default=False, compare=False)

    @classmethod
    def new(cls, generator: Optional[IdGenerator] = None) -> "SegmentId":
        raw = (generator or _default_generator).generate_span_id()
        return cls(format_hex(raw, 16), True)

    @classmethod
    def from_string(cls, text: str) -> "SegmentId":
        """Wrap a segment id received from upstream without reformatting it."""
        return cls(_check_opaque("segment id", text))

    @property
    def is_generated(self) -> bool:
        return self.generated

    def __str__(self) -> str:
        return self.text


def new_trace_id() -> TraceId:
    return TraceId.new()


def new_segment_id() -> SegmentId:
    return SegmentId.new()
