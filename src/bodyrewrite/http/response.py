"""
=============================================================================
HTTP RESPONSE SERIALIZATION
=============================================================================

Turns a status, headers and body into HTTP/1.1 wire bytes (RFC 7230).

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    HTTP/1.1 200 OK\r\n                  ← status line               │
    │    Content-Type: text/html\r\n          ← headers                   │
    │    Content-Length: 27\r\n               ← auto-calculated           │
    │    Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n                          │
    │    Server: bodyrewrite/1.0\r\n                                      │
    │    \r\n                                 ← empty line                │
    │    <html>bar is the new bar</html>      ← body                      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Content-Length is only added when the headers do not carry one. A writer
that deleted a stale Content-Length before a rewrite therefore gets the
length of the FINAL body here.

=============================================================================
"""

import http
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

from .headers import Headers


DEFAULT_SERVER_NAME = "bodyrewrite/1.0"


def reason_phrase(status_code: int) -> str:
    """Standard reason phrase for a status code, empty if unknown."""
    try:
        return http.HTTPStatus(status_code).phrase
    except ValueError:
        return ""


def body_allowed(status_code: int) -> bool:
    """1xx, 204 and 304 responses never carry a body (RFC 7230 §3.3)."""
    return not (100 <= status_code <= 199 or status_code in (204, 304))


@dataclass
class HTTPResponse:
    """
    A complete response: what a client receives.

    ResponseRecorder.result() returns one of these, and ConnectionWriter
    serializes one when the handler is done.
    """

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {self.status} {reason_phrase(self.status)}".rstrip()

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 (invalid bytes replaced)."""
        return self.body.decode("utf-8", errors="replace")

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """Set the body, encoding strings as UTF-8. Returns self."""
        if isinstance(body, str):
            self.body = body.encode("utf-8")
        else:
            self.body = body
        return self

    def head_bytes(
        self,
        server_name: str = DEFAULT_SERVER_NAME,
        content_length: Optional[int] = None,
    ) -> bytes:
        """
        Serialize the status line and headers (including the blank line).

        Args:
            server_name: Value for the Server header when none is set.
            content_length: Length to announce when no Content-Length
                           header is present. None leaves it out.
        """
        response_headers = self.headers.copy()

        # =====================================================================
        # AUTO-ADD STANDARD HEADERS
        # =====================================================================
        if (
            content_length is not None
            and "Content-Length" not in response_headers
            and body_allowed(self.status)
        ):
            response_headers.set("Content-Length", str(content_length))

        if "Date" not in response_headers:
            response_headers.set("Date", format_http_date(datetime.now(timezone.utc)))

        if "Server" not in response_headers:
            response_headers.set("Server", server_name)

        lines = [self.status_line]
        for name, value in response_headers.pairs():
            lines.append(f"{name}: {value}")
        lines.append("")

        return "\r\n".join(lines).encode("latin-1") + b"\r\n"

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the whole response for socket.sendall().

        Content-Length is calculated from the body unless already set.
        """
        if not body_allowed(self.status):
            return self.head_bytes(server_name)
        return self.head_bytes(server_name, len(self.body)) + self.body


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always in GMT, never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    dt = dt.astimezone(timezone.utc)
    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )
