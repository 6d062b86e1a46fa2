"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Callable, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bodyrewrite import RewriteConfig
from bodyrewrite.http import Headers, HTTPRequest, ResponseWriter
from bodyrewrite.server import RewriteHTTPServer


@pytest.fixture
def get_request() -> HTTPRequest:
    """Sample GET request."""
    return HTTPRequest(
        method="GET",
        path="/index.html",
        headers=Headers({"Host": "localhost:8080", "User-Agent": "pytest"}),
        client_address=("127.0.0.1", 50000),
    )


@pytest.fixture
def rewrite_config() -> RewriteConfig:
    """Rules used across tests: foo→bar on 2xx, stack traces hidden on 5xx."""
    return RewriteConfig.from_dict({
        "responses": [
            {
                "status": "200-299",
                "rewrites": [{"regex": "foo", "replacement": "bar"}],
            },
            {
                "status": "500-599",
                "rewrites": [{"regex": "Traceback.*", "replacement": "hidden"}],
            },
        ]
    })


def make_handler(
    body: bytes = b"",
    status: Optional[int] = None,
    headers: Optional[dict] = None,
) -> Callable[[ResponseWriter, object], None]:
    """Build a handler that sets headers, an optional status, and writes body."""

    def handler(writer: ResponseWriter, request: object) -> None:
        for name, value in (headers or {}).items():
            writer.headers.set(name, value)
        if status is not None:
            writer.write_status(status)
        if body:
            writer.write(body)

    return handler


@pytest.fixture
def handler_factory() -> Callable[..., Callable[[ResponseWriter, object], None]]:
    """The make_handler helper, as a fixture."""
    return make_handler


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Runs a RewriteHTTPServer in a background thread."""

    __test__ = False

    def __init__(self, app, port: int = 0):
        self.server = RewriteHTTPServer(("127.0.0.1", port), app)
        self.port = self.server.port
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> Tuple[str, int]:
        return "127.0.0.1", self.port

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def start(self) -> "TestServer":
        """Start serving in a daemon thread and wait until it accepts."""
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

        for _ in range(50):  # 5 seconds max
            try:
                with socket.create_connection(self.address, timeout=1):
                    return self
            except ConnectionRefusedError:
                time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def stop(self) -> None:
        self.server.shutdown()
        self.server.server_close()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def serve_app() -> Generator[Callable[..., TestServer], None, None]:
    """Start servers for the given apps; all are stopped after the test."""
    servers = []

    def start(app) -> TestServer:
        server = TestServer(app).start()
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()
