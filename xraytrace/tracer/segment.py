"""Segment and subsegment documents."""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from xraytrace.ids import SegmentId, TraceId
from xraytrace.tracer.entities import (
    Annotation,
    Aws,
    AwsOperation,
    Block,
    Cause,
    CauseDescription,
    ExceptionRecord,
    Http,
    Response,
    Service,
    Sql,
    XRay,
)
from xraytrace.utils.helpers import now_seconds
from xraytrace.version import __version__

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200

SUBSEGMENT_TYPE = "subsegment"
NAMESPACE_AWS = "aws"
NAMESPACE_REMOTE = "remote"

_ANNOTATION_KEY = re.compile(r"^[A-Za-z0-9_]+$")


def truncate_name(name: str) -> str:
    return name[:MAX_NAME_LENGTH]


class Entity(Block):
    """Behavior shared by segments and subsegments."""

    def end(self) -> "Entity":
        """
        Stamp end_time with the current time and clear in_progress.

        Calling it again overwrites end_time.
        """
        self.end_time = now_seconds()
        self.in_progress = False
        return self

    def put_annotation(self, key: str, value: Annotation) -> None:
        """Add an indexed key/value pair. Invalid keys or values are dropped."""
        if not isinstance(key, str) or not _ANNOTATION_KEY.match(key):
            logger.warning("Ignoring annotation with invalid key %r on %r", key, self.name)
            return
        if not isinstance(value, (str, int, float, bool)):
            logger.warning(
                "Ignoring annotation %r on %r: unsupported type %s",
                key, self.name, type(value).__name__,
            )
            return
        if isinstance(value, float) and not math.isfinite(value):
            logger.warning("Ignoring annotation %r on %r: non-finite value %r", key, self.name, value)
            return
        self.annotations[key] = value

    def put_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def set_http_status(self, status: int) -> None:
        """Record a response status and derive the error/throttle/fault flags."""
        if self.http is None:
            self.http = Http()
        if self.http.response is None:
            self.http.response = Response()
        self.http.response.status = status

        if 400 <= status < 500:
            self.error = True
            if status == 429:
                self.throttle = True
        elif status >= 500:
            self.fault = True

    def add_exception(self, error: BaseException, remote: bool = False) -> None:
        """Mark the document as faulted and record the exception as its cause."""
        self.fault = True
        if isinstance(self.cause, CauseDescription):
            self.cause.exceptions.append(ExceptionRecord.from_exception(error, remote=remote))
        else:
            self.cause = CauseDescription.from_exception(error, remote=remote)

    def to_dict(self) -> Dict[str, Any]:
        return self.serialize()

    def to_json(self) -> str:
        """
        Compact JSON form sent to the daemon.

        Raises:
            ValueError: if a metadata value is NaN or infinite
        """
        return json.dumps(self.to_dict(), separators=(",", ":"), default=str, allow_nan=False)


@dataclass
class Segment(Entity):
    """Top-level document for one process's handling of a request."""

    trace_id: TraceId
    id: SegmentId
    name: str
    start_time: float = field(default_factory=now_seconds)
    end_time: Optional[float] = None
    in_progress: bool = False
    parent_id: Optional[SegmentId] = None
    fault: bool = False
    error: bool = False
    throttle: bool = False
    cause: Optional[Cause] = None
    origin: Optional[str] = None
    user: Optional[str] = None
    resource_arn: Optional[str] = None
    http: Optional[Http] = None
    annotations: Dict[str, Annotation] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    aws: Optional[Aws] = None
    service: Optional[Service] = None

    def __post_init__(self) -> None:
        self.name = truncate_name(self.name)

    @classmethod
    def begin(
        cls,
        name: str,
        id: SegmentId,
        parent_id: Optional[SegmentId],
        trace_id: TraceId,
    ) -> "Segment":
        return cls(
            trace_id=trace_id,
            id=id,
            name=name,
            parent_id=parent_id,
            in_progress=True,
            aws=Aws(xray=XRay(sdk_version=__version__)),
        )


@dataclass
class Subsegment(Entity):
    """
    A downstream call or block of work inside a segment.

    ``trace_id`` and ``parent_id`` are only needed when the subsegment is sent
    on its own rather than inline in its parent.
    """

    name: str
    id: SegmentId
    start_time: float = field(default_factory=now_seconds)
    end_time: Optional[float] = None
    trace_id: Optional[TraceId] = None
    parent_id: Optional[SegmentId] = None
    in_progress: bool = False
    fault: bool = False
    error: bool = False
    throttle: bool = False
    # "aws" for AWS SDK calls, "remote" for other downstream calls
    namespace: Optional[str] = None
    traced: Optional[bool] = None
    precursor_ids: List[str] = field(default_factory=list)
    cause: Optional[Cause] = None
    annotations: Dict[str, Annotation] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    type: str = SUBSEGMENT_TYPE
    subsegments: List["Subsegment"] = field(default_factory=list)
    http: Optional[Http] = None
    aws: Optional[AwsOperation] = None
    sql: Optional[Sql] = None

    def __post_init__(self) -> None:
        self.name = truncate_name(self.name)
        self.type = SUBSEGMENT_TYPE

    @classmethod
    def begin(
        cls,
        name: str,
        id: SegmentId,
        parent_id: Optional[SegmentId],
        trace_id: TraceId,
    ) -> "Subsegment":
        return cls(
            name=name,
            id=id,
            trace_id=trace_id,
            parent_id=parent_id,
            in_progress=True,
        )

    def add_subsegment(self, subsegment: "Subsegment") -> None:
        """Nest a child inline; inline children do not repeat trace/parent ids."""
        subsegment.trace_id = None
        subsegment.parent_id = None
        self.subsegments.append(subsegment)
