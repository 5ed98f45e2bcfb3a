import re

from assistkit.tracing import (
    HEADER_SPAN_ID,
    HEADER_TRACE_ID,
    Tracer,
    TraceMiddleware,
    current_span,
    default_tracer,
    generate_span_id,
    generate_trace_id,
    get_trace_id,
    init_tracer,
    use_span,
)


def _tracer():
    return Tracer(enabled=True, sample_rate=1.0)


def test_generate_ids():
    tid = generate_trace_id()
    assert len(tid) == 32
    assert re.fullmatch("[0-9a-f]{32}", tid)
    sid = generate_span_id()
    assert len(sid) == 16
    assert re.fullmatch("[0-9a-f]{16}", sid)


def test_generated_ids_are_distinct():
    assert len({generate_trace_id() for _ in range(50)}) == 50


def test_should_sample_disabled():
    assert Tracer(enabled=False, sample_rate=1.0).should_sample() is False


def test_should_sample_zero_rate():
    assert Tracer(enabled=True, sample_rate=0.0).should_sample() is False


def test_should_sample_full_rate():
    assert Tracer(enabled=True, sample_rate=1.0).should_sample() is True


def test_should_sample_partial_rate_gives_both_outcomes():
    tracer = Tracer(enabled=True, sample_rate=0.5)
    assert {tracer.should_sample() for _ in range(300)} == {True, False}


def test_start_span_disabled_returns_none():
    assert Tracer(enabled=False).start_span("op") is None


def test_start_end_span():
    tracer = _tracer()
    span = tracer.start_span("test-operation")
    assert span.operation == "test-operation"
    assert span.end_time is None
    tracer.end_span(span)
    assert span.end_time is not None
    assert span.end_time >= span.start_time
    assert [s.operation for s in tracer.get_spans()] == ["test-operation"]


def test_parent_child():
    tracer = _tracer()
    parent = tracer.start_span("parent")
    tracer.end_span(parent)
    with use_span(parent):
        child = tracer.start_span("child")
    assert child.trace_id == parent.trace_id
    assert child.parent_id == parent.span_id
    assert parent.parent_id == ""


def test_context_propagation():
    tracer = _tracer()
    span = tracer.start_span("test")
    with use_span(span):
        assert current_span() is span
        assert current_span().span_id == span.span_id
    assert current_span() is None


def test_add_tag():
    tracer = _tracer()
    span = tracer.start_span("test")
    tracer.add_tag(span, "key", "value")
    assert span.tags["key"] == "value"


def test_log():
    tracer = _tracer()
    span = tracer.start_span("test")
    tracer.log(span, "event", "something happened")
    assert len(span.logs) == 1
    assert span.logs[0].key == "event"
    assert span.logs[0].value == "something happened"


def test_set_error():
    tracer = _tracer()
    span = tracer.start_span("test")
    error = RuntimeError("boom")
    tracer.set_error(span, error)
    assert span.error is error
    assert span.tags["error"] == "true"


def test_get_spans():
    tracer = _tracer()
    tracer.end_span(tracer.start_span("op1"))
    tracer.end_span(tracer.start_span("op2"))
    spans = tracer.get_spans()
    assert len(spans) == 2
    spans.clear()
    assert len(tracer.get_spans()) == 2


def test_clear_spans():
    tracer = _tracer()
    tracer.end_span(tracer.start_span("op"))
    tracer.clear_spans()
    assert tracer.get_spans() == []


def test_end_span_none_stores_nothing():
    tracer = _tracer()
    tracer.end_span(None)
    assert tracer.get_spans() == []


def test_span_store_is_trimmed():
    tracer = _tracer()
    for index in range(10001):
        tracer.end_span(tracer.start_span(f"op{index}"))
    spans = tracer.get_spans()
    assert len(spans) == 5000
    assert spans[-1].operation == "op10000"


def test_init_tracer_only_once():
    first = init_tracer(True, 0.5)
    second = init_tracer(False, 1.0)
    assert first is second
    assert default_tracer() is first


def _app(seen):
    def app(environ, start_response):
        seen.update(environ)
        start_response("200 OK", [("Content-Type", "text/plain")])
        return [b"ok"]

    return app


def _call(middleware, environ):
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(middleware(environ, start_response))
    return captured, body


def test_middleware_reuses_incoming_trace_id():
    seen = {}
    middleware = TraceMiddleware(_app(seen), tracer=_tracer())
    captured, body = _call(middleware, {"HTTP_X_TRACE_ID": "abc123"})
    assert body == b"ok"
    assert captured["headers"][HEADER_TRACE_ID] == "abc123"
    assert get_trace_id(seen) == "abc123"
    assert len(captured["headers"][HEADER_SPAN_ID]) == 16
    assert seen["span_id"] == captured["headers"][HEADER_SPAN_ID]


def test_middleware_generates_trace_id():
    seen = {}
    middleware = TraceMiddleware(_app(seen), tracer=_tracer())
    captured, _ = _call(middleware, {})
    trace_id = captured["headers"][HEADER_TRACE_ID]
    assert len(trace_id) == 32
    assert get_trace_id(seen) == trace_id


def test_middleware_disabled_passes_through():
    seen = {}
    middleware = TraceMiddleware(_app(seen), tracer=Tracer(enabled=False))
    captured, _ = _call(middleware, {})
    assert HEADER_TRACE_ID not in captured["headers"]
    assert get_trace_id(seen) == ""