"""
HTTP request representation.

The rewrite middleware never looks inside the request. It is handed to the
downstream handler untouched. The bundled server and handlers use this
dataclass; embedders may pass any object their handlers understand.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

from .headers import Headers

if TYPE_CHECKING:
    from http.server import BaseHTTPRequestHandler


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

        GET /docs/index.html?lang=en HTTP/1.1
        Host: example.com

        HTTPRequest(
            method="GET",
            path="/docs/index.html",
            query="lang=en",
            headers=Headers({"Host": "example.com"}),
        )
    """

    method: str
    path: str
    query: str = ""
    version: str = "HTTP/1.1"
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    client_address: tuple = ("", 0)

    @property
    def target(self) -> str:
        """Path plus query string, as sent on the request line."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path

    @property
    def query_params(self) -> Dict[str, List[str]]:
        return parse_qs(self.query, keep_blank_values=True)

    @property
    def host(self) -> str:
        return self.headers.get("Host")

    @property
    def user_agent(self) -> str:
        return self.headers.get("User-Agent")

    def get_header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name, default)

    def get_query(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a query parameter."""
        values = self.query_params.get(name)
        return values[0] if values else default

    @classmethod
    def from_handler(cls, handler: "BaseHTTPRequestHandler") -> "HTTPRequest":
        """
        Build a request from a stdlib BaseHTTPRequestHandler.

        Reads the body when a Content-Length is announced.
        """
        parts = urlsplit(handler.path)
        headers = Headers(handler.headers.items())

        body = b""
        length = headers.get("Content-Length")
        if length.isdigit() and int(length) > 0:
            body = handler.rfile.read(int(length))

        return cls(
            method=handler.command,
            path=parts.path or "/",
            query=parts.query,
            version=handler.request_version,
            headers=headers,
            body=body,
            client_address=tuple(handler.client_address),
        )
