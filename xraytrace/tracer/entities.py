"""Nested blocks of segment and subsegment documents.

Every block serializes without the fields that are unset, false or empty.
"""

from __future__ import annotations

import os
import traceback
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from xraytrace.ids import SegmentId, TraceId

MAX_STACK_FRAMES = 50


def serialize_value(value: Any) -> Any:
    if isinstance(value, Block):
        return value.serialize()
    if isinstance(value, (TraceId, SegmentId)):
        return str(value)
    if isinstance(value, list):
        return [serialize_value(item) for item in value]
    return value


def compact(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """Build a dict from (key, value) pairs, dropping None, False and empty values."""
    out: Dict[str, Any] = {}
    for key, value in items:
        if value is None or value is False:
            continue
        value = serialize_value(value)
        if isinstance(value, (dict, list)) and not value:
            continue
        out[key] = value
    return out


class Block:
    """Dataclass mixin serializing fields by name."""

    def serialize(self) -> Any:
        return compact((f.name, getattr(self, f.name)) for f in fields(self))


@dataclass
class Request(Block):
    method: Optional[str] = None
    url: Optional[str] = None
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    # segments only: client_ip came from X-Forwarded-For
    x_forwarded_for: Optional[bool] = None
    # subsegments only: the callee is itself traced
    traced: Optional[bool] = None


@dataclass
class Response(Block):
    status: Optional[int] = None
    content_length: Optional[int] = None


@dataclass
class Http(Block):
    request: Optional[Request] = None
    response: Optional[Response] = None


@dataclass
class Ecs(Block):
    container: Optional[str] = None


@dataclass
class Ec2(Block):
    instance_id: Optional[str] = None
    availability_zone: Optional[str] = None


@dataclass
class ElasticBeanstalk(Block):
    environment_name: Optional[str] = None
    version_label: Optional[str] = None
    deployment_id: Optional[int] = None


@dataclass
class Tracing(Block):
    sdk: Optional[str] = None


@dataclass
class XRay(Block):
    sdk_version: Optional[str] = None


@dataclass
class Aws(Block):
    """AWS resource the application runs on (segment ``aws`` block)."""

    account_id: Optional[str] = None
    ecs: Optional[Ecs] = None
    ec2: Optional[Ec2] = None
    elastic_beanstalk: Optional[ElasticBeanstalk] = None
    tracing: Optional[Tracing] = None
    xray: Optional[XRay] = None


@dataclass
class Service(Block):
    version: Optional[str] = None


@dataclass
class AwsOperation(Block):
    """AWS call made by the application (subsegment ``aws`` block)."""

    operation: Optional[str] = None
    account_id: Optional[str] = None
    region: Optional[str] = None
    request_id: Optional[str] = None
    queue_url: Optional[str] = None
    table_name: Optional[str] = None


@dataclass
class Sql(Block):
    connection_string: Optional[str] = None
    url: Optional[str] = None
    sanitized_query: Optional[str] = None
    database_type: Optional[str] = None
    database_version: Optional[str] = None
    driver_version: Optional[str] = None
    user: Optional[str] = None
    # "call" or "statement"
    preparation: Optional[str] = None


@dataclass
class StackFrame(Block):
    path: Optional[str] = None
    line: Optional[int] = None
    label: Optional[str] = None


@dataclass
class ExceptionRecord(Block):
    id: str
    message: Optional[str] = None
    type: Optional[str] = None
    remote: Optional[bool] = None
    truncated: Optional[int] = None
    skipped: Optional[int] = None
    cause: Optional[str] = None
    stack: List[StackFrame] = field(default_factory=list)

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        remote: bool = False,
        max_frames: int = MAX_STACK_FRAMES,
    ) -> "ExceptionRecord":
        frames = traceback.extract_tb(error.__traceback__) if error.__traceback__ else []
        # innermost frame first
        frames = list(reversed(frames))
        truncated = len(frames) - max_frames if len(frames) > max_frames else None
        return cls(
            id=str(SegmentId.new()),
            message=str(error) or None,
            type=type(error).__name__,
            remote=remote or None,
            truncated=truncated,
            stack=[
                StackFrame(path=frame.filename, line=frame.lineno, label=frame.name)
                for frame in frames[:max_frames]
            ],
        )


@dataclass
class CauseReference(Block):
    """Points at an exception recorded on another (sub)segment."""

    exception_id: str

    def serialize(self) -> Any:
        return self.exception_id


@dataclass
class CauseDescription(Block):
    working_directory: str = ""
    paths: List[str] = field(default_factory=list)
    exceptions: List[ExceptionRecord] = field(default_factory=list)

    @classmethod
    def from_exception(cls, error: BaseException, remote: bool = False) -> "CauseDescription":
        return cls(
            working_directory=os.getcwd(),
            exceptions=[ExceptionRecord.from_exception(error, remote=remote)],
        )

    def serialize(self) -> Any:
        # the collector expects all three keys, even when empty
        return {
            "working_directory": self.working_directory,
            "paths": list(self.paths),
            "exceptions": [record.serialize() for record in self.exceptions],
        }


Cause = Union[CauseReference, CauseDescription]

Annotation = Union[str, int, float, bool]
