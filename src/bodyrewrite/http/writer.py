"""
=============================================================================
RESPONSE WRITER INTERFACE
=============================================================================

Handlers produce responses by writing into a ResponseWriter rather than by
returning a response object. This lets a middleware stand in for the real
writer and observe (or hold back) everything the handler produces.

=============================================================================
THE WRITER CONTRACT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    RESPONSE WRITER LIFECYCLE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   writer.headers.set("Content-Type", "text/html")                   │
    │        │    (headers are mutable until the status is committed)     │
    │        ▼                                                             │
    │   writer.write_status(200)                                          │
    │        │    (one-shot: later calls are ignored, 1xx excepted)       │
    │        ▼                                                             │
    │   writer.write(b"<html>...")                                        │
    │        │    (append-only body; implies write_status(200) if the     │
    │        │     handler never committed a status)                      │
    │        ▼                                                             │
    │   handler returns ── response is complete                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
OPTIONAL CAPABILITIES
=============================================================================

Some writers can do more than the mandatory contract:

    Hijacker  - hand the raw connection to the handler (protocol upgrades)
    Flusher   - push pending bytes to the client now

Capabilities are separate ABCs and are probed with isinstance():

    if isinstance(writer, Flusher):
        writer.flush()

A caller asking a writer for a capability it lacks gets a
CapabilityUnsupportedError rather than an AttributeError.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Tuple

from .headers import Headers


class CapabilityUnsupportedError(NotImplementedError):
    """Raised when a writer is asked for a capability it does not have."""


class ResponseWriter(ABC):
    """
    Mandatory response writer contract.

    Implementations: ConnectionWriter (real socket), ResponseRecorder
    (in memory), InterceptingWriter (buffering wrapper).
    """

    @property
    @abstractmethod
    def headers(self) -> Headers:
        """The header collection that will be sent with the response."""

    @abstractmethod
    def write_status(self, status_code: int) -> None:
        """
        Send the status line and headers.

        Only the first non-informational call has an effect.
        1xx codes may be written any number of times before it.
        """

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write body bytes. Returns the number of bytes accepted."""


class Hijacker(ABC):
    """Writers able to hand over the underlying connection."""

    @abstractmethod
    def hijack(self) -> Tuple[Any, Any, Any]:
        """
        Take over the connection.

        Returns:
            (socket, reader, writer) for the raw connection. After this
            call the response writer must not be used again.
        """


class Flusher(ABC):
    """Writers able to push buffered data to the client."""

    @abstractmethod
    def flush(self) -> None:
        """Send any buffered data to the client."""


# A handler writes exactly one response through the writer.
Handler = Callable[[ResponseWriter, Any], None]


def is_informational(status_code: int) -> bool:
    """True for interim 1xx status codes."""
    return 100 <= status_code <= 199
