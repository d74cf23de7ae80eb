"""Client library for recording AWS X-Ray trace documents."""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from xraytrace.config import RecorderConfig, load_config
from xraytrace.context import (
    TRACE_HEADER_NAME,
    Context,
    Header,
    SamplingDecision,
    parse_header,
    render_header,
)
from xraytrace.errors import (
    ConfigError,
    HeaderParseError,
    IdentifierParseError,
    InitializationError,
    TransportError,
    ValidationError,
    XRayError,
)
from xraytrace.ids import SegmentId, TraceId, new_segment_id, new_trace_id
from xraytrace.instrumentation import capture
from xraytrace.tracer import OpenSegment, OpenSubsegment, Recorder, Segment, Subsegment
from xraytrace.version import __version__

logging.getLogger(__name__).addHandler(logging.NullHandler())
logger = logging.getLogger(__name__)

_recorder: Optional[Recorder] = None
_lock = threading.Lock()


def init(
    config: Optional[RecorderConfig] = None,
    exporter: Optional[Any] = None,
    **overrides: Any,
) -> Recorder:
    """
    Build and install the process-wide recorder.

    Args:
        config: Fully resolved configuration; load_config(overrides=...) is used if omitted
        exporter: Exporter to send documents with (UDP to the daemon by default)
        **overrides: Configuration values taking priority over env and file

    Returns:
        The installed recorder. Repeated calls return the existing one.
    """
    global _recorder
    with _lock:
        if _recorder is not None:
            logger.warning("xraytrace.init() called again; keeping the existing recorder")
            return _recorder
        if config is None:
            config = load_config(overrides=overrides)
        elif overrides:
            raise InitializationError("pass either config or overrides, not both")
        _recorder = Recorder(config, exporter=exporter)
        return _recorder


def get_recorder() -> Recorder:
    """Return the process-wide recorder, initializing it from the environment if needed."""
    if _recorder is not None:
        return _recorder
    return init()


def shutdown() -> None:
    """Close the process-wide recorder's exporter and forget it."""
    global _recorder
    with _lock:
        if _recorder is None:
            return
        recorder, _recorder = _recorder, None
    recorder.shutdown()


__all__ = [
    "__version__",
    "init",
    "get_recorder",
    "shutdown",
    "capture",
    "Recorder",
    "RecorderConfig",
    "load_config",
    "OpenSegment",
    "OpenSubsegment",
    "Segment",
    "Subsegment",
    "Context",
    "Header",
    "SamplingDecision",
    "TRACE_HEADER_NAME",
    "parse_header",
    "render_header",
    "TraceId",
    "SegmentId",
    "new_trace_id",
    "new_segment_id",
    "XRayError",
    "ConfigError",
    "ValidationError",
    "IdentifierParseError",
    "HeaderParseError",
    "TransportError",
    "InitializationError",
]
