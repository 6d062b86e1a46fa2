"""
Reverse proxy handler.

Forwards each request to an upstream HTTP service and writes the upstream
response into the ResponseWriter. Placed behind RewriteMiddleware this
rewrites another service's responses:

    proxy = ProxyHandler("http://127.0.0.1:3000")
    handler = RewriteMiddleware(proxy, config)

Hop-by-hop headers (RFC 7230 §6.1) are not forwarded in either direction.
Bodies are passed through as received, so a compressed upstream body keeps
its Content-Encoding and is left alone by the rewrite middleware.
"""

import http.client
import logging
from typing import Any, Optional
from urllib.parse import urlsplit

from ..http.writer import ResponseWriter


logger = logging.getLogger(__name__)


HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})


class ProxyHandler:
    """Writer-style handler forwarding requests to `upstream`."""

    def __init__(self, upstream: str, timeout: Optional[float] = 30.0):
        """
        Args:
            upstream: Base URL, e.g. "http://127.0.0.1:3000" or
                     "https://api.internal/v1".
            timeout: Socket timeout for upstream requests, in seconds.

        Raises:
            ValueError: When upstream is not an http(s) URL.
        """
        parts = urlsplit(upstream)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise ValueError(f"Invalid upstream URL: {upstream!r}")

        self.upstream = upstream
        self.scheme = parts.scheme
        self.host = parts.hostname
        self.port = parts.port
        self.base_path = parts.path.rstrip("/")
        self.timeout = timeout

    def __call__(self, writer: ResponseWriter, request: Any) -> None:
        self.handle(writer, request)

    def handle(self, writer: ResponseWriter, request: Any) -> None:
        """Forward the request and copy the upstream response into writer."""
        connection = self._connect()
        target = self.base_path + request.target

        headers = {
            name: value
            for name, value in request.headers.pairs()
            if name.lower() not in HOP_BY_HOP_HEADERS and name.lower() != "host"
        }
        headers["Host"] = self.host if self.port is None else f"{self.host}:{self.port}"

        try:
            connection.request(request.method, target, body=request.body or None, headers=headers)
            upstream_response = connection.getresponse()
            body = upstream_response.read()
        except (OSError, http.client.HTTPException) as e:
            logger.warning(f"Upstream {self.upstream} failed for {request.method} {target}: {e}")
            _bad_gateway(writer)
            return
        finally:
            connection.close()

        for name, value in upstream_response.getheaders():
            if name.lower() in HOP_BY_HOP_HEADERS:
                continue
            writer.headers.add(name, value)

        writer.write_status(upstream_response.status)
        writer.write(body)

    def _connect(self) -> http.client.HTTPConnection:
        if self.scheme == "https":
            return http.client.HTTPSConnection(self.host, self.port, timeout=self.timeout)
        return http.client.HTTPConnection(self.host, self.port, timeout=self.timeout)


def _bad_gateway(writer: ResponseWriter) -> None:
    body = b"Bad Gateway"
    writer.headers.set("Content-Type", "text/plain; charset=utf-8")
    writer.headers.set("Content-Length", str(len(body)))
    writer.write_status(502)
    writer.write(body)
