"""Lightweight in-process tracing: spans, sampling and a WSGI middleware."""

from __future__ import annotations

import copy
import secrets
import threading
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

HEADER_TRACE_ID = "X-Trace-ID"
HEADER_SPAN_ID = "X-Span-ID"
HEADER_PARENT_ID = "X-Parent-ID"

_ENVIRON_TRACE_HEADER = "HTTP_X_TRACE_ID"
_MAX_SPANS = 10000
_KEEP_SPANS = 5000


@dataclass
class SpanLog:
    """A timestamped key/value event recorded on a span."""

    timestamp: datetime
    key: str
    value: str


@dataclass
class Span:
    """One timed operation within a trace."""

    trace_id: str
    span_id: str
    operation: str
    parent_id: str = ""
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    tags: dict[str, str] = field(default_factory=dict)
    logs: list[SpanLog] = field(default_factory=list)
    error: BaseException | None = None


_current_span: ContextVar[Span | None] = ContextVar("assistkit_current_span", default=None)


def current_span() -> Span | None:
    """Return the span active in the current context, if any."""
    return _current_span.get()


@contextmanager
def use_span(span: Span | None) -> Iterator[Span | None]:
    """Make *span* the current span for the duration of the ``with`` block."""
    token = _current_span.set(span)
    try:
        yield span
    finally:
        _current_span.reset(token)


def generate_trace_id() -> str:
    """Return a random 128-bit trace id as 32 hex digits."""
    return secrets.token_hex(16)


def generate_span_id() -> str:
    """Return a random 64-bit span id as 16 hex digits."""
    return secrets.token_hex(8)


class Tracer:
    """Creates spans and keeps the finished ones in memory."""

    def __init__(self, enabled: bool = False, sample_rate: float = 1.0) -> None:
        self.enabled = enabled
        self.sample_rate = sample_rate
        self._spans: list[Span] = []
        self._lock = threading.Lock()

    def should_sample(self) -> bool:
        """Decide whether a new span should be recorded."""
        if not self.enabled:
            return False
        if self.sample_rate >= 1.0:
            return True
        if self.sample_rate <= 0:
            return False
        return secrets.randbits(8) / 256.0 < self.sample_rate

    def start_span(self, operation: str) -> Span | None:
        """Start a span, as a child of the current span when there is one.

        Returns ``None`` when the span is not sampled.
        """
        if not self.should_sample():
            return None
        span = Span(trace_id=generate_trace_id(), span_id=generate_span_id(), operation=operation)
        parent = current_span()
        if parent is not None:
            span.trace_id = parent.trace_id
            span.parent_id = parent.span_id
        return span

    def end_span(self, span: Span | None) -> None:
        """Mark *span* finished and store a copy of it."""
        if span is None:
            return
        span.end_time = datetime.now()
        with self._lock:
            self._spans.append(copy.copy(span))
            if len(self._spans) > _MAX_SPANS:
                del self._spans[:-_KEEP_SPANS]

    def add_tag(self, span: Span | None, key: str, value: str) -> None:
        """Set a tag on *span*."""
        if span is not None:
            span.tags[key] = value

    def log(self, span: Span | None, key: str, value: str) -> None:
        """Record an event on *span*."""
        if span is not None:
            span.logs.append(SpanLog(timestamp=datetime.now(), key=key, value=value))

    def set_error(self, span: Span | None, error: BaseException) -> None:
        """Attach *error* to *span* and tag it as failed."""
        if span is None:
            return
        span.error = error
        span.tags["error"] = "true"

    def get_spans(self) -> list[Span]:
        """Return a copy of the list of finished spans."""
        with self._lock:
            return list(self._spans)

    def clear_spans(self) -> None:
        """Forget all finished spans."""
        with self._lock:
            self._spans.clear()


_default: Tracer | None = None
_default_lock = threading.Lock()


def init_tracer(enabled: bool, sample_rate: float) -> Tracer:
    """Create the process-wide tracer on first call; later calls return the same one."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Tracer(enabled, sample_rate)
        return _default


def default_tracer() -> Tracer:
    """Return the process-wide tracer, creating a disabled one if needed."""
    if _default is None:
        return init_tracer(False, 1.0)
    return _default


def get_trace_id(environ: dict[str, Any]) -> str:
    """Return the trace id the middleware stored in a WSGI *environ*, or ``""``."""
    value = environ.get("trace_id")
    return value if isinstance(value, str) else ""


_StartResponse = Callable[..., Any]
_WSGIApp = Callable[[dict[str, Any], _StartResponse], Iterable[bytes]]


class TraceMiddleware:
    """WSGI middleware that assigns trace and span ids to every request.

    An incoming ``X-Trace-ID`` header is reused; otherwise a new id is made.
    Both ids are stored in the environ and sent back as response headers.
    """

    def __init__(self, app: _WSGIApp, tracer: Tracer | None = None) -> None:
        self.app = app
        self.tracer = tracer

    def __call__(self, environ: dict[str, Any], start_response: _StartResponse) -> Iterable[bytes]:
        tracer = self.tracer if self.tracer is not None else default_tracer()
        if not tracer.enabled:
            return self.app(environ, start_response)

        trace_id = environ.get(_ENVIRON_TRACE_HEADER) or generate_trace_id()
        span_id = generate_span_id()
        environ["trace_id"] = trace_id
        environ["span_id"] = span_id
        extra = [(HEADER_TRACE_ID, trace_id), (HEADER_SPAN_ID, span_id)]

        def traced_start_response(status: str, headers: list[tuple[str, str]], exc_info: Any = None) -> Any:
            present = {name.lower() for name, _ in headers}
            added = [item for item in extra if item[0].lower() not in present]
            return start_response(status, [*headers, *added], exc_info)

        return self.app(environ, traced_start_response)