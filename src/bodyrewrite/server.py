"""
=============================================================================
REWRITING HTTP SERVER
=============================================================================

Hosts a writer-style handler (normally a pipeline ending in the rewrite
middleware) on the standard library's threading HTTP server.

=============================================================================
REQUEST LIFECYCLE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   socket ──► BaseHTTPRequestHandler parses the request line and     │
    │              headers                                                │
    │                  │                                                   │
    │                  ▼                                                   │
    │   HTTPRequest.from_handler()      ConnectionWriter(handler)         │
    │                  │                        │                          │
    │                  └──────────┬─────────────┘                          │
    │                             ▼                                        │
    │                  app(writer, request)                                │
    │                             │                                        │
    │                             ▼                                        │
    │                  writer.finish()  ──► status, headers, body sent    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

One thread per connection (ThreadingHTTPServer). Keep-alive is supported:
the request loop continues until the client or the response asks to
close.

=============================================================================
"""

import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Tuple

from .config import RewriteConfig, ServerConfig
from .handlers import ProxyHandler, StaticFileHandler
from .http.connection import ConnectionWriter
from .http.request import HTTPRequest
from .http.response import DEFAULT_SERVER_NAME
from .http.writer import Handler
from .middleware import LoggingMiddleware, MiddlewarePipeline, RewriteMiddleware


logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    """Configure root logging for the server process."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("bodyrewrite").setLevel(level)


def build_app(config: ServerConfig, rewrite_config: RewriteConfig) -> Handler:
    """
    Assemble the handler chain the server runs.

        LoggingMiddleware → RewriteMiddleware → ProxyHandler | StaticFileHandler

    Raises:
        ConfigError: When the rewrite rules are invalid.
        ValueError: When the upstream URL or static directory is unusable.
    """
    if config.upstream:
        downstream: Handler = ProxyHandler(config.upstream)
        logger.info(f"Proxying to {config.upstream}")
    else:
        downstream = StaticFileHandler(config.static_dir)
        logger.info(f"Serving files from {config.static_dir}")

    pipeline = MiddlewarePipeline()
    pipeline.add(LoggingMiddleware(log_format=config.log_format))
    pipeline.add(RewriteMiddleware.factory(rewrite_config))
    return pipeline.wrap(downstream)


class RewriteRequestHandler(BaseHTTPRequestHandler):
    """
    Bridges BaseHTTPRequestHandler to a writer-style handler.

    Every HTTP method goes through the same dispatch.
    """

    protocol_version = "HTTP/1.1"
    server: "RewriteHTTPServer"

    def dispatch(self) -> None:
        request = HTTPRequest.from_handler(self)
        writer = ConnectionWriter(self, server_name=self.server.server_name_header)

        try:
            self.server.app(writer, request)
        except Exception as e:
            # Handler threw an exception - answer 500 if nothing went out yet
            logger.exception(f"Handler error for {request.method} {request.path}: {e}")
            if writer.hijacked:
                return
            if writer.head_sent:
                self.close_connection = True
                return
            writer = ConnectionWriter(self, server_name=self.server.server_name_header)
            body = b"Internal Server Error"
            writer.headers.set("Content-Type", "text/plain; charset=utf-8")
            writer.write_status(500)
            writer.write(body)

        try:
            writer.finish()
        except OSError as e:
            logger.warning(f"Unable to send response to {self.client_address[0]}: {e}")
            self.close_connection = True

    do_GET = dispatch
    do_HEAD = dispatch
    do_POST = dispatch
    do_PUT = dispatch
    do_PATCH = dispatch
    do_DELETE = dispatch
    do_OPTIONS = dispatch

    def log_message(self, format: str, *args) -> None:
        # Access logging is LoggingMiddleware's job
        logger.debug(f"{self.address_string()} {format % args}")


class RewriteHTTPServer(ThreadingHTTPServer):
    """
    Threading HTTP server running one writer-style handler.

        server = RewriteHTTPServer(("127.0.0.1", 8080), app)
        server.serve_forever()
    """

    daemon_threads = True

    def __init__(
        self,
        address: Tuple[str, int],
        app: Handler,
        server_name: str = DEFAULT_SERVER_NAME,
    ):
        self.app = app
        self.server_name_header = server_name
        super().__init__(address, RewriteRequestHandler)

    @property
    def port(self) -> int:
        return self.server_address[1]


def serve(app: Handler, host: str = "127.0.0.1", port: int = 8080,
          server_name: str = DEFAULT_SERVER_NAME) -> None:
    """Run app until interrupted (Ctrl+C)."""
    server = RewriteHTTPServer((host, port), app, server_name=server_name)
    logger.info(f"Listening on http://{host}:{server.port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    finally:
        server.server_close()
        logger.info("Server stopped")
