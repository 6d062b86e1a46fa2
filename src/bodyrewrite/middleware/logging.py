"""
=============================================================================
LOGGING MIDDLEWARE
=============================================================================

One access-log line per request, with timing and the status and size of
what actually went out (after any rewrite further down the chain).

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default, Apache style):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [10/Jun/2026:10:55:36 +0000] "GET /" 200 1234 5.01ms  │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/",            │
    │  "status_code": 200, "content_length": 1234, "duration_ms": 5.01}   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import time
import json
import uuid
import logging
from dataclasses import dataclass, asdict
from typing import Any, Optional, Tuple

from .base import Middleware
from ..http.headers import Headers
from ..http.writer import (
    CapabilityUnsupportedError,
    Flusher,
    Handler,
    Hijacker,
    ResponseWriter,
    is_informational,
)


# Configure "bodyrewrite.access" separately to route access logs elsewhere.
logger = logging.getLogger("bodyrewrite.access")


@dataclass
class RequestLog:
    """Structured log entry for a request."""

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class StatusRecordingWriter(ResponseWriter, Hijacker, Flusher):
    """
    Pass-through writer that remembers the final status and body size.

    Capabilities of the wrapped writer stay reachable.
    """

    def __init__(self, writer: ResponseWriter):
        self._writer = writer
        self.status_code: Optional[int] = None
        self.bytes_written = 0

    @property
    def headers(self) -> Headers:
        return self._writer.headers

    def write_status(self, status_code: int) -> None:
        if self.status_code is None and not is_informational(status_code):
            self.status_code = status_code
        self._writer.write_status(status_code)

    def write(self, data: bytes) -> int:
        if self.status_code is None:
            self.status_code = 200
        written = self._writer.write(data)
        self.bytes_written += written
        return written

    def hijack(self) -> Tuple[Any, Any, Any]:
        if not isinstance(self._writer, Hijacker):
            raise CapabilityUnsupportedError(
                f"{type(self._writer).__name__} is not a Hijacker"
            )
        return self._writer.hijack()

    def flush(self) -> None:
        if isinstance(self._writer, Flusher):
            self._writer.flush()


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Put it FIRST in the pipeline so it sees every request and the final
    response:

        pipeline.add(LoggingMiddleware())
        pipeline.add(RewriteMiddleware.factory(config))

    Usage:
        LoggingMiddleware(log_format="json")
        LoggingMiddleware(skip_paths=["/health"])
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[list] = None,
    ):
        """
        Args:
            log_format: "text" (Apache style) or "json".
            include_request_id: Add an X-Request-Id header to the response.
            log_level: Level used for access log lines.
            skip_paths: Paths that are never logged.
        """
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, writer: ResponseWriter, request: Any, next: Handler) -> None:
        request_id = str(uuid.uuid4())[:8]
        method = getattr(request, "method", "-")
        path = getattr(request, "path", "-")

        # Headers are still mutable before the handler runs
        if self.include_request_id:
            writer.headers.set("X-Request-Id", request_id)

        recording = StatusRecordingWriter(writer)
        start_time = time.time()

        try:
            next(recording, request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if path in self.skip_paths:
            return

        client_address = getattr(request, "client_address", None) or ("-",)
        log_entry = RequestLog(
            request_id=request_id,
            method=method,
            path=path,
            client_ip=client_address[0] or "-",
            user_agent=getattr(request, "user_agent", "") or "-",
            status_code=recording.status_code or 200,
            content_length=recording.bytes_written,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(self.log_level, log_entry.to_text())
