"""
=============================================================================
HTTP PRIMITIVES
=============================================================================

Building blocks shared by the middleware, the handlers and the server:

    Headers             case-insensitive, multi-valued header collection
    ResponseWriter      what handlers write responses into
    Hijacker, Flusher   optional writer capabilities
    InterceptingWriter  buffering writer used by the rewrite middleware
    ResponseRecorder    in-memory writer
    ConnectionWriter    socket-backed writer used by the server
    HTTPRequest         parsed request
    HTTPResponse        complete response + wire serialization

=============================================================================
"""

from .headers import Headers, canonical_header_name
from .writer import (
    CapabilityUnsupportedError,
    Flusher,
    Handler,
    Hijacker,
    ResponseWriter,
    is_informational,
)
from .intercept import InterceptingWriter
from .recorder import ResponseRecorder
from .connection import ConnectionWriter
from .request import HTTPRequest
from .response import HTTPResponse, format_http_date, reason_phrase

__all__ = [
    "Headers",
    "canonical_header_name",
    "CapabilityUnsupportedError",
    "Flusher",
    "Handler",
    "Hijacker",
    "ResponseWriter",
    "is_informational",
    "InterceptingWriter",
    "ResponseRecorder",
    "ConnectionWriter",
    "HTTPRequest",
    "HTTPResponse",
    "format_http_date",
    "reason_phrase",
]
