"""
=============================================================================
RESPONSE BODY REWRITE MIDDLEWARE
=============================================================================

Rewrites response bodies with regular expressions, selected by status code.

=============================================================================
HOW A RESPONSE IS REWRITTEN
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REWRITE REQUEST FLOW                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. DISPATCH                                                        │
    │      next(InterceptingWriter(writer), request)                      │
    │      handler output is buffered, headers reach the real writer     │
    │                                                                      │
    │   2. DECIDE                                                          │
    │      status = captured status (200 if never set)                    │
    │      body   = buffered bytes                                        │
    │                                                                      │
    │   3. MATCH AND REWRITE (first matching rule only)                   │
    │                                                                      │
    │        rule 1: status "200-299"  ── 404 not contained ── skip       │
    │        rule 2: status "400-499"  ── contained ──┐                   │
    │        rule 3: status "404"      ── never looked at                 │
    │                                                 ▼                   │
    │        body = rewrite_1(body)                                       │
    │        body = rewrite_2(body)    (sees rewrite_1's output)          │
    │                                                                      │
    │   4. FLUSH                                                           │
    │      writer.write(body)                                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ENCODED BODIES
=============================================================================

A body with a Content-Encoding other than "identity" (gzip, br, ...) is
forwarded byte-for-byte. Matching a text pattern against compressed bytes
would corrupt the payload.

=============================================================================
USAGE
=============================================================================

    config = RewriteConfig.from_dict({
        "responses": [
            {"status": "200-299", "rewrites": [{"regex": "foo", "replacement": "bar"}]},
        ]
    })

    # As a handler wrapping another handler
    handler = RewriteMiddleware(static_files.handle, config)

    # Or inside a pipeline
    pipeline.add(RewriteMiddleware.factory(config))

=============================================================================
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Tuple, Union

from ..config import ConfigError, Rewrite, RewriteConfig
from ..http.intercept import InterceptingWriter
from ..http.writer import Handler, ResponseWriter
from ..ranges import RangeParseError, RangeSet


@dataclass(frozen=True)
class ParsedRewrite:
    """A compiled substitution."""

    regex: "re.Pattern[bytes]"
    replacement: bytes

    @classmethod
    def compile(cls, rewrite: Rewrite) -> "ParsedRewrite":
        """
        Compile a Rewrite.

        The replacement template is checked against the pattern here too,
        so a reference to a missing group fails at construction rather
        than on the first matching response.

        Raises:
            ConfigError: With the offending pattern attached.
        """
        try:
            regex = re.compile(rewrite.regex.encode("utf-8"))
            replacement = rewrite.replacement.encode("utf-8")
            # An empty subject still parses the template
            regex.sub(replacement, b"")
        except (re.error, IndexError) as e:
            raise ConfigError(
                f"error compiling regex {rewrite.regex!r}: {e}",
                regex=rewrite.regex,
            ) from e

        return cls(regex=regex, replacement=replacement)

    def apply(self, body: bytes) -> bytes:
        """Replace every non-overlapping match."""
        return self.regex.sub(self.replacement, body)

    def __str__(self) -> str:
        return f"{self.regex.pattern!r} -> {self.replacement!r}"


@dataclass(frozen=True)
class ParsedResponse:
    """A response rule with its status ranges and compiled rewrites."""

    status: RangeSet
    rewrites: Tuple[ParsedRewrite, ...]

    def matches(self, status_code: int) -> bool:
        return self.status.contains(status_code)

    def apply(self, body: bytes) -> bytes:
        """Run every rewrite in order, each on the previous one's output."""
        for rewrite in self.rewrites:
            body = rewrite.apply(body)
        return body

    def __str__(self) -> str:
        rewrites = ", ".join(str(rewrite) for rewrite in self.rewrites)
        return f"{{status: {self.status}, rewrites: [{rewrites}]}}"


def parse_responses(config: RewriteConfig) -> Tuple[ParsedResponse, ...]:
    """
    Parse every response rule of a configuration.

    All or nothing: the first invalid status or pattern raises and
    nothing is returned.

    Raises:
        ConfigError: On an invalid status specification or pattern.
    """
    parsed = []
    for response in config.responses:
        try:
            status = RangeSet.parse(response.status)
        except RangeParseError as e:
            raise ConfigError(
                f"error parsing status {response.status!r}: {e}",
                status=response.status,
            ) from e

        rewrites = tuple(ParsedRewrite.compile(rewrite) for rewrite in response.rewrites)
        parsed.append(ParsedResponse(status=status, rewrites=rewrites))

    return tuple(parsed)


def is_identity_encoding(content_encoding: str) -> bool:
    """True for an absent, empty or "identity" Content-Encoding."""
    encoding = content_encoding.strip().lower()
    return encoding in ("", "identity")


def _as_config(config: Union[RewriteConfig, Mapping[str, Any], None]) -> RewriteConfig:
    if config is None:
        return RewriteConfig()
    if isinstance(config, RewriteConfig):
        return config
    return RewriteConfig.from_dict(config)


def _default_logger(name: str) -> logging.Logger:
    return logging.getLogger("bodyrewrite.rewrite").getChild(name)


class RewriteMiddleware:
    """
    Rewrites the body of responses whose status matches a configured rule.

    =========================================================================
    LIFECYCLE
    =========================================================================

    Construction parses and compiles the whole configuration once. The
    parsed rules are immutable and shared by every request, so one
    instance serves any number of concurrent requests without locking.

    Each request gets its own InterceptingWriter, dropped when the
    request is done.

    =========================================================================
    ERRORS
    =========================================================================

    - ConfigError from the constructor: bad status range or pattern. No
      instance is created.
    - Writing the final body can fail (client went away). That is logged
      and the request ends; nothing is retried or raised.

    =========================================================================
    """

    def __init__(
        self,
        next_handler: Optional[Handler],
        config: Union[RewriteConfig, Mapping[str, Any], None] = None,
        name: str = "rewrite-body",
        logger: Optional[logging.Logger] = None,
    ):
        """
        Build the middleware.

        Args:
            next_handler: Downstream handler, called as next(writer, request).
            config: RewriteConfig, or a plain mapping in the same shape.
            name: Instance name, used for the default logger.
            logger: Logger to report to. Defaults to
                   "bodyrewrite.rewrite.<name>".

        Raises:
            ConfigError: When any status range or pattern is invalid.
        """
        config = _as_config(config)
        self.name = name
        self.logger = logger or _default_logger(name)
        self.logger.info(f"Responses config: {list(config.responses)}")

        self.responses = parse_responses(config)
        self.next = next_handler

    @classmethod
    def factory(
        cls,
        config: Union[RewriteConfig, Mapping[str, Any], None] = None,
        name: str = "rewrite-body",
        logger: Optional[logging.Logger] = None,
    ) -> Callable[[Handler], "RewriteMiddleware"]:
        """
        Return a function wrapping a handler in this middleware.

        The configuration is parsed and logged once, here, so errors surface
        when the factory is created. Every wrapped handler shares the parsed
        rules.
        """
        config = _as_config(config)
        logger = logger or _default_logger(name)
        logger.info(f"Responses config: {list(config.responses)}")
        responses = parse_responses(config)

        def wrap(next_handler: Handler) -> "RewriteMiddleware":
            middleware = cls.__new__(cls)
            middleware.name = name
            middleware.logger = logger
            middleware.responses = responses
            middleware.next = next_handler
            return middleware

        return wrap

    def __call__(self, writer: ResponseWriter, request: Any) -> None:
        # ═══════════════════════════════════════════════════════════════════
        # DISPATCH
        # ═══════════════════════════════════════════════════════════════════
        wrapped = InterceptingWriter(writer, self.responses)
        self.next(wrapped, request)

        if wrapped.hijacked:
            return

        # Handlers that wrote nothing still get their headers committed
        if not wrapped.headers_sent:
            wrapped.write_status(200)

        # ═══════════════════════════════════════════════════════════════════
        # DECIDE
        # ═══════════════════════════════════════════════════════════════════
        body = wrapped.body
        content_encoding = wrapped.headers.get("Content-Encoding")

        if not is_identity_encoding(content_encoding):
            self.logger.debug(
                f"Skipping rewrite of {content_encoding!r} encoded body "
                f"(status {wrapped.status_code})"
            )
            self._write(writer, body)
            return

        # ═══════════════════════════════════════════════════════════════════
        # MATCH AND REWRITE (first match wins)
        # ═══════════════════════════════════════════════════════════════════
        body = self.rewrite(wrapped.status_code, body)

        # ═══════════════════════════════════════════════════════════════════
        # FLUSH
        # ═══════════════════════════════════════════════════════════════════
        self._write(writer, body)

    def rewrite(self, status_code: int, body: bytes) -> bytes:
        """Apply the first rule matching status_code to body."""
        for response in self.responses:
            if response.matches(status_code):
                return response.apply(body)
        return body

    def _write(self, writer: ResponseWriter, body: bytes) -> None:
        try:
            writer.write(body)
        except OSError as e:
            self.logger.warning(f"Unable to write body: {e}")
