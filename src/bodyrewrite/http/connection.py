"""
=============================================================================
CONNECTION-BACKED RESPONSE WRITER
=============================================================================

The "real" ResponseWriter: writes to the client socket owned by a stdlib
BaseHTTPRequestHandler.

=============================================================================
WHEN DO BYTES HIT THE WIRE?
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   call                    │ what is sent                            │
    ├───────────────────────────┼─────────────────────────────────────────┤
    │   write_status(1xx)       │ interim response, immediately           │
    │   write_status(final)     │ nothing (status is staged)              │
    │   write(data)             │ nothing (body is staged)                │
    │   flush()                 │ status + headers + staged body;         │
    │                           │ later writes go straight out and the    │
    │                           │ connection closes at the end            │
    │   finish()                │ status + headers with Content-Length    │
    │                           │ of the final body, then the body        │
    │   hijack()                │ nothing, ever again                     │
    └───────────────────────────┴─────────────────────────────────────────┘

Staging the head until finish() is what lets Content-Length describe the
body that was actually written, not one a handler announced before a
middleware rewrote it.

=============================================================================
"""

from typing import TYPE_CHECKING, Any, Optional, Tuple

from .headers import Headers
from .response import DEFAULT_SERVER_NAME, HTTPResponse, body_allowed
from .writer import Flusher, Hijacker, ResponseWriter, is_informational

if TYPE_CHECKING:
    from http.server import BaseHTTPRequestHandler


class ConnectionWriter(ResponseWriter, Hijacker, Flusher):
    """
    ResponseWriter over a BaseHTTPRequestHandler's socket streams.

    The server creates one per request and calls finish() after the
    handler returns.
    """

    def __init__(
        self,
        handler: "BaseHTTPRequestHandler",
        server_name: str = DEFAULT_SERVER_NAME,
    ):
        self._handler = handler
        self._server_name = server_name
        self._headers = Headers()
        self._pending = bytearray()
        self.status_code: Optional[int] = None
        self.head_sent = False
        self.hijacked = False
        self.finished = False
        self.body_bytes = 0

    @property
    def headers(self) -> Headers:
        return self._headers

    @property
    def is_head_request(self) -> bool:
        return getattr(self._handler, "command", "") == "HEAD"

    def write_status(self, status_code: int) -> None:
        if self.hijacked or self.status_code is not None:
            return

        if is_informational(status_code):
            # HTTP/1.0 clients do not understand interim responses
            if self._handler.request_version != "HTTP/1.0":
                interim = HTTPResponse(status=status_code, headers=self._headers)
                self._handler.wfile.write(interim.head_bytes(self._server_name))
                self._handler.wfile.flush()
            return

        self.status_code = status_code

    def write(self, data: bytes) -> int:
        if self.hijacked:
            raise ConnectionError("response writer used after hijack")

        if self.status_code is None:
            self.write_status(200)

        if not body_allowed(self.status_code):
            return 0

        if self.head_sent:
            self._send_body(data)
        else:
            self._pending.extend(data)
        return len(data)

    def flush(self) -> None:
        if self.hijacked:
            return

        if self.status_code is None:
            self.write_status(200)

        if not self.head_sent:
            self._send_head(content_length=None)
        if self._pending:
            self._send_body(bytes(self._pending))
            self._pending.clear()
        self._handler.wfile.flush()

    def hijack(self) -> Tuple[Any, Any, Any]:
        if self.hijacked:
            raise ConnectionError("connection already hijacked")

        self.hijacked = True
        self._handler.close_connection = True
        return self._handler.connection, self._handler.rfile, self._handler.wfile

    def finish(self) -> None:
        """Complete the response. Safe to call more than once."""
        if self.hijacked or self.finished:
            return
        self.finished = True

        if self.status_code is None:
            self.write_status(200)

        if not self.head_sent:
            content_length: Optional[int] = len(self._pending)
            if self.is_head_request and not self._pending:
                # The GET body length is unknown here, so announce none
                content_length = None
            self._send_head(content_length=content_length)
        if self._pending:
            self._send_body(bytes(self._pending))
            self._pending.clear()
        self._handler.wfile.flush()

    # ─────────────────────────────────────────────────────────────────────
    # WIRE OUTPUT
    # ─────────────────────────────────────────────────────────────────────

    def _send_head(self, content_length: Optional[int]) -> None:
        if self._handler.close_connection:
            self._headers.set("Connection", "close")

        if (
            content_length is None
            and "Content-Length" not in self._headers
            and body_allowed(self.status_code)
            and not self.is_head_request
        ):
            # No length: the body ends when the connection closes
            self._headers.set("Connection", "close")

        if self._headers.get("Connection").lower() == "close":
            self._handler.close_connection = True

        head = HTTPResponse(status=self.status_code, headers=self._headers)
        self._handler.wfile.write(head.head_bytes(self._server_name, content_length))
        self.head_sent = True

    def _send_body(self, data: bytes) -> None:
        if self.is_head_request:
            return
        self._handler.wfile.write(data)
        self.body_bytes += len(data)
