"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files from a directory through the ResponseWriter interface, so the
rewrite middleware can sit in front of a plain directory of HTML, JSON or
text files.

=============================================================================
FLOW
=============================================================================

    GET /docs/guide.html

    1. Strip the URL prefix, decode %XX escapes
    2. Resolve against the root directory
    3. Security check: is the resolved path still inside the root?
    4. Directory → index file
    5. ETag matches If-None-Match → 304
    6. Otherwise: headers (Content-Type, Content-Length, ETag,
       Last-Modified, Cache-Control), status 200, file bytes

The handler announces Content-Length. When a rewrite rule matches the
status, the rewrite middleware drops it again before it reaches the client.

=============================================================================
"""

import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import unquote

from ..http.response import format_http_date
from ..http.writer import ResponseWriter


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Writer-style handler serving files below root_dir.

        static = StaticFileHandler("./public")
        handler = RewriteMiddleware(static.handle, config)
    """

    def __init__(
        self,
        root_dir: str,
        url_prefix: str = "",
        index_file: str = "index.html",
        cache_max_age: int = 3600,
    ):
        """
        Args:
            root_dir: Directory to serve. Nothing outside it is reachable.
            url_prefix: Prefix stripped from the request path.
            index_file: File served for directory requests.
            cache_max_age: Cache-Control max-age in seconds.

        Raises:
            ValueError: When root_dir is not a directory.
        """
        self.root_dir = Path(root_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")
        self.index_file = index_file
        self.cache_max_age = cache_max_age

        if not self.root_dir.is_dir():
            raise ValueError(f"Static root directory does not exist: {root_dir}")

    def __call__(self, writer: ResponseWriter, request: Any) -> None:
        self.handle(writer, request)

    def handle(self, writer: ResponseWriter, request: Any) -> None:
        """Serve the file named by request.path."""
        if request.method not in ("GET", "HEAD"):
            writer.headers.set("Allow", "GET, HEAD")
            _send_error(writer, 405, "Method Not Allowed")
            return

        file_path = unquote(request.path)
        if self.url_prefix and file_path.startswith(self.url_prefix):
            file_path = file_path[len(self.url_prefix):]
        file_path = file_path.lstrip("/")

        full_path = (self.root_dir / file_path).resolve()

        # ─────────────────────────────────────────────────────────────────
        # SECURITY: PATH TRAVERSAL CHECK
        # ─────────────────────────────────────────────────────────────────
        # /../../etc/passwd must not escape root_dir
        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {file_path}")
            _send_error(writer, 403, "Access denied")
            return

        if full_path.is_dir():
            full_path = full_path / self.index_file

        if not full_path.is_file():
            _send_error(writer, 404, f"File not found: {file_path}")
            return

        self._serve_file(writer, request, full_path)

    def _serve_file(self, writer: ResponseWriter, request: Any, path: Path) -> None:
        try:
            stat = path.stat()
            content = path.read_bytes()
        except PermissionError:
            _send_error(writer, 403, "Permission denied")
            return
        except OSError as e:
            logger.error(f"Error serving file {path}: {e}")
            _send_error(writer, 500, "Failed to read file")
            return

        mtime = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
        etag = f'"{int(stat.st_mtime)}-{stat.st_size}"'

        headers = writer.headers
        headers.set("ETag", etag)
        headers.set("Last-Modified", format_http_date(mtime))
        headers.set("Cache-Control", f"public, max-age={self.cache_max_age}")

        # ─────────────────────────────────────────────────────────────────
        # CONDITIONAL REQUEST
        # ─────────────────────────────────────────────────────────────────
        if request.headers.get("If-None-Match") == etag:
            writer.write_status(304)
            return

        headers.set("Content-Type", content_type_for(path))
        headers.set("Content-Length", str(len(content)))
        writer.write_status(200)
        writer.write(content)


def content_type_for(path: Path) -> str:
    """Content-Type for a file, with a UTF-8 charset for text types."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None:
        return "application/octet-stream"
    if mime_type.startswith("text/") or mime_type in ("application/json", "application/javascript"):
        return f"{mime_type}; charset=utf-8"
    return mime_type


def _send_error(writer: ResponseWriter, status_code: int, message: str) -> None:
    body = message.encode("utf-8")
    writer.headers.set("Content-Type", "text/plain; charset=utf-8")
    writer.headers.set("Content-Length", str(len(body)))
    writer.write_status(status_code)
    writer.write(body)
