"""
=============================================================================
BODYREWRITE - Response Body Rewriting Middleware
=============================================================================

Rewrites HTTP response bodies with regular expressions, selected by the
response status code.

=============================================================================
OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   client ──► RewriteMiddleware ──► downstream handler               │
    │                    │                       │                         │
    │                    │   InterceptingWriter  │                         │
    │                    │◄──── status, headers, body (buffered) ──┘       │
    │                    │                                                 │
    │                    ├── status in a rule's ranges?                    │
    │                    │     yes: apply the rule's rewrites in order    │
    │                    │                                                 │
    │   client ◄─────────┘  final body                                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    bodyrewrite/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m bodyrewrite)
    ├── config.py            # RewriteConfig / ServerConfig
    ├── ranges.py            # Status code range sets
    ├── server.py            # Threading HTTP server hosting the chain
    ├── http/                # Writer interface and HTTP primitives
    │   ├── headers.py       # Case-insensitive multi-valued headers
    │   ├── writer.py        # ResponseWriter, Hijacker, Flusher
    │   ├── intercept.py     # Buffering writer used by the middleware
    │   ├── recorder.py      # In-memory writer
    │   ├── connection.py    # Socket-backed writer
    │   ├── request.py       # HTTPRequest
    │   └── response.py      # HTTPResponse serialization
    ├── middleware/
    │   ├── base.py          # Middleware, MiddlewarePipeline
    │   ├── rewrite.py       # RewriteMiddleware
    │   └── logging.py       # Access logging
    └── handlers/
        ├── static.py        # Static file serving
        └── proxy.py         # Upstream proxy

=============================================================================
QUICK START
=============================================================================

    from bodyrewrite import RewriteMiddleware, ResponseRecorder

    def hello(writer, request):
        writer.write(b"foo")

    handler = RewriteMiddleware(hello, {
        "responses": [
            {"status": "200-299", "rewrites": [{"regex": "foo", "replacement": "bar"}]},
        ]
    })

    recorder = ResponseRecorder()
    handler(recorder, None)
    recorder.body   # b"bar"

=============================================================================
"""

__version__ = "1.0.0"

from .config import (
    ConfigError,
    ResponseRule,
    Rewrite,
    RewriteConfig,
    ServerConfig,
    create_config,
    load_config,
)
from .ranges import RangeParseError, RangeSet
from .http import (
    CapabilityUnsupportedError,
    Flusher,
    Headers,
    Hijacker,
    HTTPRequest,
    HTTPResponse,
    InterceptingWriter,
    ResponseRecorder,
    ResponseWriter,
)
from .middleware import RewriteMiddleware

__all__ = [
    "ConfigError",
    "ResponseRule",
    "Rewrite",
    "RewriteConfig",
    "ServerConfig",
    "create_config",
    "load_config",
    "RangeParseError",
    "RangeSet",
    "CapabilityUnsupportedError",
    "Flusher",
    "Headers",
    "Hijacker",
    "HTTPRequest",
    "HTTPResponse",
    "InterceptingWriter",
    "ResponseRecorder",
    "ResponseWriter",
    "RewriteMiddleware",
    "__version__",
]
