"""
Downstream handlers for the bundled server.

StaticFileHandler:
    Serves files from a directory.

ProxyHandler:
    Forwards requests to an upstream HTTP service.
"""

from .static import StaticFileHandler, content_type_for
from .proxy import ProxyHandler

__all__ = [
    "StaticFileHandler",
    "ProxyHandler",
    "content_type_for",
]
