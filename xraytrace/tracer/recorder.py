"""Recorder: opens segments/subsegments and tracks the active context per thread."""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from xraytrace import lambda_runtime
from xraytrace.config import RecorderConfig, load_config
from xraytrace.context.context import (
    Context,
    get_current_context,
    pop_context,
    push_context,
)
from xraytrace.errors import IdentifierParseError
from xraytrace.ids import SegmentId, TraceId
from xraytrace.tracer.entities import Service
from xraytrace.tracer.segment import Segment, Subsegment

logger = logging.getLogger(__name__)


class ContextScope:
    """
    Installs a context as current for the calling thread.

    Closing the scope puts back whatever was current when it was opened.
    Scopes on one thread must be closed in reverse order of opening.
    """

    def __init__(self, context: Context) -> None:
        self.context = context
        self._token = push_context(context)

    @property
    def closed(self) -> bool:
        return self._token is None

    def close(self) -> None:
        if self._token is None:
            return
        token, self._token = self._token, None
        pop_context(token)

    def __enter__(self) -> "ContextScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False


class _OpenEntity:
    """
    Handle owning an in-progress document and the context scope it runs in.

    The document is finalized and emitted exactly once, on the first of
    close(), leaving a ``with`` block, or an exception unwinding through it,
    unless the caller took it with take() first.
    """

    def __init__(
        self,
        recorder: "Recorder",
        context: Context,
        document: Union[Segment, Subsegment],
    ) -> None:
        self.recorder = recorder
        self.context = context
        self._document: Optional[Union[Segment, Subsegment]] = document
        self._scope = ContextScope(context)

    @property
    def closed(self) -> bool:
        return self._scope.closed

    def take(self) -> Optional[Union[Segment, Subsegment]]:
        """Detach the document; the scope will no longer end or emit it."""
        document, self._document = self._document, None
        return document

    def close(self) -> None:
        """Restore the previous context, then end and emit the document."""
        self._scope.close()
        document, self._document = self._document, None
        if document is not None:
            document.end()
            self.recorder.emit(document)

    def _exit(self, exc: Optional[BaseException]) -> None:
        try:
            if exc is not None and self._document is not None:
                self._document.add_exception(exc)
        finally:
            self.close()

    def __del__(self) -> None:
        document = getattr(self, "_document", None)
        if document is None:
            return
        # The context token can only be reset by the thread that opened it.
        self._document = None
        logger.warning("%r was never closed, emitting it on collection", document.name)
        document.end()
        self.recorder.emit(document)

    # Context manager support
    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._exit(exc)
        return False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self._exit(exc)
        return False


class OpenSegment(_OpenEntity):
    """An open segment; recorded when closed."""

    @property
    def segment(self) -> Optional[Segment]:
        return self._document


class OpenSubsegment(_OpenEntity):
    """An open subsegment; recorded when closed."""

    @property
    def subsegment(self) -> Optional[Subsegment]:
        return self._document


class Recorder:
    """
    Opens segments and subsegments and hands finished ones to an exporter.

    A recorder can be shared by any number of threads; the active context is
    kept per thread and is not carried across threads automatically (see
    activate()).
    """

    def __init__(
        self,
        config: Optional[RecorderConfig] = None,
        exporter: Optional[Any] = None,
    ) -> None:
        """
        Args:
            config: Resolved configuration, loaded with load_config() if omitted
            exporter: Object with ``send(document)``; a UDPExporter pointed at
                the configured daemon address if omitted

        Raises:
            TransportError: if the default exporter cannot reach its socket
        """
        self.config = config or load_config()
        if exporter is None:
            from xraytrace.exporter.udp_exporter import UDPExporter

            host, port = self.config.daemon_endpoint
            exporter = UDPExporter(host, port)
        self.exporter = exporter

    def emit(self, document: Union[Segment, Subsegment]) -> None:
        """Send a document; failures are logged, never raised."""
        try:
            self.exporter.send(document)
        except Exception as e:
            logger.debug("error emitting data %r", e)

    def current(self) -> Optional[Context]:
        """Return the calling thread's current context, if any."""
        return get_current_context()

    def activate(self, context: Context) -> ContextScope:
        """
        Make a context current on this thread, e.g. one carried over from
        another thread. Closing the returned scope restores the previous one.
        """
        return ContextScope(context)

    def begin_segment(self, name: str) -> OpenSegment:
        """
        Begin a new trace.

        Any context already current on this thread is replaced for the
        lifetime of the returned scope. Close the scope, or use it in a
        ``with`` block: a handle that is dropped unclosed is emitted when it
        is garbage collected, but its context stays current on this thread.
        """
        current = self.current()
        if current is not None:
            logger.debug(
                "Beginning new segment while another segment exists in the segment context. "
                "Overwriting current segment '%s' to start new segment named '%s'.",
                current.segment_id, name,
            )

        context = Context.new_root()
        segment = Segment.begin(name, context.segment_id, context.parent_id, context.trace_id)
        if self.config.origin:
            segment.origin = self.config.origin
        if self.config.user:
            segment.user = self.config.user
        if self.config.service_version:
            segment.service = Service(version=self.config.service_version)
        return OpenSegment(self, context, segment)

    def begin_subsegment(
        self,
        name: str,
        parent: Optional[Context] = None,
        namespace: Optional[str] = None,
    ) -> OpenSubsegment:
        """
        Begin a subsegment.

        The parent is, in order: ``parent`` if given, the thread's current
        context, the serverless host's trace header. Without any of those a
        new parentless trace is started.
        """
        base = parent or self.current()
        if base is not None:
            context = base.child()
        else:
            context = self._context_from_host() or Context.new_root()

        subsegment = Subsegment.begin(name, context.segment_id, context.parent_id, context.trace_id)
        subsegment.namespace = namespace
        return OpenSubsegment(self, context, subsegment)

    def _context_from_host(self) -> Optional[Context]:
        header = lambda_runtime.inbound_header(self.config.trace_header_env)
        if header is None:
            return None
        try:
            trace_id = TraceId.from_string(header.trace_id)
            parent_id = SegmentId.from_string(header.parent_id) if header.parent_id else None
        except IdentifierParseError as e:
            logger.debug("unusable ids in `%s`, starting a new trace: %s", self.config.trace_header_env, e)
            return None
        return Context(trace_id=trace_id, segment_id=SegmentId.new(), parent_id=parent_id)

    def shutdown(self) -> None:
        shutdown = getattr(self.exporter, "shutdown", None)
        if shutdown is not None:
            shutdown()
