"""
Unit tests for middleware composition and access logging.
"""

import json
import logging

import pytest

from bodyrewrite.http import CapabilityUnsupportedError, ResponseRecorder
from bodyrewrite.middleware import (
    FunctionMiddleware,
    LoggingMiddleware,
    Middleware,
    MiddlewarePipeline,
    RewriteMiddleware,
    function_middleware,
)
from bodyrewrite.middleware.logging import RequestLog, StatusRecordingWriter


class RecordingMiddleware(Middleware):
    """Appends its label to a shared list before and after the handler."""

    def __init__(self, label: str, calls: list):
        self.label = label
        self.calls = calls

    def __call__(self, writer, request, next):
        self.calls.append(f"{self.label}:before")
        next(writer, request)
        self.calls.append(f"{self.label}:after")


class TestMiddlewarePipeline:
    """Tests for MiddlewarePipeline."""

    def test_order(self):
        """First added is outermost."""
        calls = []

        def handler(writer, request):
            calls.append("handler")

        pipeline = MiddlewarePipeline()
        pipeline.use(RecordingMiddleware("a", calls), RecordingMiddleware("b", calls))
        pipeline.wrap(handler)(ResponseRecorder(), None)

        assert calls == ["a:before", "b:before", "handler", "b:after", "a:after"]

    def test_handler_wrappers(self, handler_factory, rewrite_config):
        """Factories taking the next handler can be mixed with Middleware."""
        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware(include_request_id=False))
        pipeline.add(RewriteMiddleware.factory(rewrite_config))

        recorder = ResponseRecorder()
        pipeline.wrap(handler_factory(b"foo"))(recorder, None)

        assert recorder.body == b"bar"
        assert len(pipeline) == 2

    def test_empty_pipeline(self, handler_factory):
        """Without middleware the handler is returned as is."""
        handler = handler_factory(b"x")
        assert MiddlewarePipeline().wrap(handler) is handler

    def test_function_middleware(self, handler_factory):
        @function_middleware
        def served_by(writer, request, next):
            writer.headers.set("X-Served-By", "edge-1")
            next(writer, request)

        recorder = ResponseRecorder()
        MiddlewarePipeline().add(served_by).wrap(handler_factory(b"x"))(recorder, None)

        assert isinstance(served_by, FunctionMiddleware)
        assert served_by.name == "served_by"
        assert recorder.headers.get("X-Served-By") == "edge-1"


class TestStatusRecordingWriter:
    """Tests for the writer LoggingMiddleware passes down."""

    def test_records_status_and_size(self):
        recorder = ResponseRecorder()
        writer = StatusRecordingWriter(recorder)

        writer.write_status(103)
        writer.write_status(404)
        writer.write(b"missing")

        assert writer.status_code == 404
        assert writer.bytes_written == 7
        assert recorder.informational == [103]

    def test_hijack_unsupported(self):
        with pytest.raises(CapabilityUnsupportedError):
            StatusRecordingWriter(ResponseRecorder()).hijack()

    def test_flush_delegates(self):
        recorder = ResponseRecorder()
        StatusRecordingWriter(recorder).flush()
        assert recorder.flushed


class TestLoggingMiddleware:
    """Tests for access logging."""

    def test_text_log_line(self, get_request, handler_factory, caplog):
        middleware = LoggingMiddleware()
        recorder = ResponseRecorder()

        with caplog.at_level(logging.INFO, logger="bodyrewrite.access"):
            middleware(recorder, get_request, handler_factory(b"hello", status=201))

        assert '"GET /index.html" 201 5' in caplog.text
        assert "127.0.0.1" in caplog.text
        assert len(recorder.headers.get("X-Request-Id")) == 8

    def test_logs_rewritten_size(self, get_request, handler_factory, rewrite_config, caplog):
        """The logged size is what left the rewrite middleware."""
        app = MiddlewarePipeline().use(
            LoggingMiddleware(log_format="json"),
            RewriteMiddleware.factory(rewrite_config),
        ).wrap(handler_factory(b"Traceback (most recent call last)", status=500))

        with caplog.at_level(logging.INFO, logger="bodyrewrite.access"):
            app(ResponseRecorder(), get_request)

        entry = json.loads(caplog.records[-1].getMessage())
        assert entry["status_code"] == 500
        assert entry["content_length"] == len(b"hidden")

    def test_skip_paths(self, get_request, handler_factory, caplog):
        middleware = LoggingMiddleware(skip_paths=["/index.html"])

        with caplog.at_level(logging.INFO, logger="bodyrewrite.access"):
            middleware(ResponseRecorder(), get_request, handler_factory(b"x"))

        assert caplog.records == []

    def test_handler_error_logged_and_raised(self, get_request, caplog):
        def broken(writer, request):
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="bodyrewrite.access"):
            with pytest.raises(RuntimeError):
                LoggingMiddleware()(ResponseRecorder(), get_request, broken)

        assert "RuntimeError: boom" in caplog.text

    def test_request_log_to_dict(self):
        entry = RequestLog(
            request_id="abcd1234",
            method="GET",
            path="/",
            client_ip="127.0.0.1",
            user_agent="pytest",
            status_code=200,
            content_length=10,
            duration_ms=1.23456,
            timestamp="01/Jan/2026:00:00:00 +0000",
        )
        assert entry.to_dict()["duration_ms"] == 1.23

    def test_any_request_object(self, handler_factory, caplog):
        """Requests without the usual attributes are still logged."""
        with caplog.at_level(logging.INFO, logger="bodyrewrite.access"):
            LoggingMiddleware()(ResponseRecorder(), object(), handler_factory(b"x"))

        assert '"- -" 200 1' in caplog.text
