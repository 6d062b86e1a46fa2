"""
=============================================================================
INTERCEPTING RESPONSE WRITER
=============================================================================

A ResponseWriter that stands in for the real one while holding back the
body, so a middleware can rewrite it once the handler has finished.

=============================================================================
WHAT GOES WHERE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        INTERCEPTING WRITER                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   handler                  InterceptingWriter          real writer  │
    │   ───────                  ──────────────────          ───────────  │
    │                                                                      │
    │   headers.set(...)  ────►  private Headers                          │
    │                                                                      │
    │   write_status(103) ────►  copy headers  ───────────►  headers      │
    │                            forward 103   ───────────►  103 sent     │
    │                                                                      │
    │   write_status(200) ────►  copy headers  ───────────►  headers      │
    │                            drop Content-Length (if a rule matches)  │
    │                            forward 200   ───────────►  status       │
    │                                                                      │
    │   write(b"...")     ────►  buffer  (nothing reaches the client)     │
    │                                                                      │
    │   hijack() / flush()────►  delegated when the real writer can       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Headers are COPIED per name, never appended. An informational response may
already have copied some of them, and appending would send them twice.

Content-Length is removed whenever a configured rule matches the status:
the rewrite may change the body length, and the real writer establishes
the correct value once the final body is written.

=============================================================================
"""

from typing import TYPE_CHECKING, Any, Sequence, Tuple

from .headers import Headers
from .writer import (
    CapabilityUnsupportedError,
    Flusher,
    Hijacker,
    ResponseWriter,
    is_informational,
)

if TYPE_CHECKING:
    from ..middleware.rewrite import ParsedResponse


class InterceptingWriter(ResponseWriter, Hijacker, Flusher):
    """
    Buffering stand-in for a real ResponseWriter.

    One instance per request. The middleware reads `status_code` and
    `body` after the downstream handler has returned.
    """

    def __init__(self, writer: ResponseWriter, responses: Sequence["ParsedResponse"]):
        self._writer = writer
        self._responses = responses
        self._header_map = Headers()
        self._buffer = bytearray()
        self.status_code = 200
        self.headers_sent = False
        self.hijacked = False

    @property
    def headers(self) -> Headers:
        """Private headers until the status is committed, then the real ones."""
        if self.headers_sent:
            return self._writer.headers
        return self._header_map

    @property
    def body(self) -> bytes:
        """Everything the handler wrote so far."""
        return bytes(self._buffer)

    def write_status(self, status_code: int) -> None:
        if self.headers_sent:
            return

        # ═══════════════════════════════════════════════════════════════════
        # INFORMATIONAL (1xx) RESPONSES
        # ═══════════════════════════════════════════════════════════════════
        # Passed straight through. More interim responses, or the final
        # status, may follow, so nothing is committed here.
        if is_informational(status_code):
            self._copy_headers()
            self._writer.write_status(status_code)
            return

        # ═══════════════════════════════════════════════════════════════════
        # FINAL STATUS
        # ═══════════════════════════════════════════════════════════════════
        self.status_code = status_code
        self._copy_headers()

        if any(response.matches(status_code) for response in self._responses):
            self._writer.headers.delete("Content-Length")

        self._writer.write_status(status_code)
        self.headers_sent = True

    def write(self, data: bytes) -> int:
        if not self.headers_sent:
            self.write_status(200)

        self._buffer.extend(data)
        return len(data)

    def hijack(self) -> Tuple[Any, Any, Any]:
        if not isinstance(self._writer, Hijacker):
            raise CapabilityUnsupportedError(
                f"{type(self._writer).__name__} is not a Hijacker"
            )

        connection = self._writer.hijack()
        self.hijacked = True
        return connection

    def flush(self) -> None:
        # Only reaches what the real writer holds. The buffered body stays
        # here until the rewrite decision is made.
        if isinstance(self._writer, Flusher):
            self._writer.flush()

    def _copy_headers(self) -> None:
        target = self._writer.headers
        for name, values in self._header_map.items():
            target[name] = values
