"""Document model and recorder."""

from xraytrace.tracer.recorder import ContextScope, OpenSegment, OpenSubsegment, Recorder
from xraytrace.tracer.segment import Segment, Subsegment

__all__ = [
    "Segment",
    "Subsegment",
    "Recorder",
    "OpenSegment",
    "OpenSubsegment",
    "ContextScope",
]
