"""
=============================================================================
MIDDLEWARE
=============================================================================

RewriteMiddleware:
    Buffers the downstream response and rewrites its body with regular
    expressions when the status code matches a configured rule.

LoggingMiddleware:
    Logs every request with timing, final status and size.

MiddlewarePipeline:
    Chains middleware around a writer-style handler.

=============================================================================
"""

from .base import FunctionMiddleware, Middleware, MiddlewarePipeline, function_middleware
from .logging import LoggingMiddleware
from .rewrite import RewriteMiddleware, ParsedResponse, ParsedRewrite, parse_responses

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "FunctionMiddleware",
    "function_middleware",
    "LoggingMiddleware",
    "RewriteMiddleware",
    "ParsedResponse",
    "ParsedRewrite",
    "parse_responses",
]
