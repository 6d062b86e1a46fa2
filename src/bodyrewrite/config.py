"""
=============================================================================
CONFIGURATION
=============================================================================

Two configuration objects live here:

    RewriteConfig   which bodies to rewrite, and how
    ServerConfig    how the bundled server runs

=============================================================================
REWRITE CONFIGURATION SCHEMA
=============================================================================

    responses:
      - status: "200-299,400"          # status code ranges
        rewrites:                       # applied in order
          - regex: "foo"
            replacement: "bar"
          - regex: "(\\w+)@example\\.com"
            replacement: "\\1@example.org"
      - status: "500-599"
        rewrites:
          - regex: "Traceback.*"
            replacement: ""

The same structure is accepted as a dict, a JSON file or a YAML file.
For embedding in a larger file it may be nested under a
"responseBodyRewrite" or "rewrite" key.

Patterns use Python `re` syntax and are matched against the raw body
bytes. Replacements use `re` template syntax (\\1, \\g<name>).

=============================================================================
CONFIGURATION SOURCES (ServerConfig)
=============================================================================

    Priority (highest to lowest):

    1. Command-line arguments     python -m bodyrewrite --port 3000
    2. Environment variables      REWRITE_PORT=3000 python -m bodyrewrite
    3. Default values (in the dataclass)

=============================================================================
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml


class ConfigError(ValueError):
    """
    Invalid rewrite configuration.

    Raised at construction time. The offending status specification or
    pattern is attached so callers can point at the broken entry.
    """

    def __init__(
        self,
        message: str,
        status: Optional[str] = None,
        regex: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.regex = regex


@dataclass(frozen=True)
class Rewrite:
    """One substitution: every match of `regex` becomes `replacement`."""

    regex: str
    replacement: str = ""


@dataclass(frozen=True)
class ResponseRule:
    """Rewrites to apply, in order, when the status matches `status`."""

    status: str
    rewrites: Tuple[Rewrite, ...] = ()


@dataclass(frozen=True)
class RewriteConfig:
    """
    Ordered list of response rules.

    The first rule whose status ranges contain the response status wins.
    """

    responses: Tuple[ResponseRule, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RewriteConfig":
        """
        Build a configuration from plain data (parsed JSON or YAML).

        Raises:
            ConfigError: When the structure does not match the schema.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(f"configuration must be a mapping, got {type(data).__name__}")

        # Support nested under a plugin key or flat
        for key in ("responseBodyRewrite", "rewrite"):
            if key in data:
                data = data[key] or {}
                break

        responses = data.get("responses") or []
        if not isinstance(responses, list):
            raise ConfigError("'responses' must be a list")

        return cls(tuple(_response_from_dict(item) for item in responses))

    def to_dict(self) -> dict:
        return {
            "responses": [
                {
                    "status": response.status,
                    "rewrites": [
                        {"regex": rw.regex, "replacement": rw.replacement}
                        for rw in response.rewrites
                    ],
                }
                for response in self.responses
            ]
        }


def _response_from_dict(item: Any) -> ResponseRule:
    if not isinstance(item, Mapping):
        raise ConfigError(f"response entry must be a mapping, got {item!r}")

    status = item.get("status", "")
    if isinstance(status, int):
        status = str(status)
    if not isinstance(status, str):
        raise ConfigError(f"'status' must be a string, got {status!r}", status=str(status))

    rewrites = item.get("rewrites") or []
    if not isinstance(rewrites, list):
        raise ConfigError("'rewrites' must be a list", status=status)

    parsed = []
    for rewrite in rewrites:
        if not isinstance(rewrite, Mapping):
            raise ConfigError(f"rewrite entry must be a mapping, got {rewrite!r}", status=status)
        regex = rewrite.get("regex", "")
        replacement = rewrite.get("replacement", "")
        if not isinstance(regex, str) or not isinstance(replacement, str):
            raise ConfigError(
                "'regex' and 'replacement' must be strings",
                status=status,
                regex=str(regex),
            )
        parsed.append(Rewrite(regex=regex, replacement=replacement))

    return ResponseRule(status=status, rewrites=tuple(parsed))


def create_config() -> RewriteConfig:
    """The default configuration: no rules, nothing is rewritten."""
    return RewriteConfig()


def load_config(path: Union[str, Path]) -> RewriteConfig:
    """
    Load a rewrite configuration from a JSON or YAML file.

    The format is chosen by extension: .yaml/.yml is YAML, anything
    else is JSON.

    Raises:
        ConfigError: When the file cannot be parsed or is malformed.
        OSError: When the file cannot be read.
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        text = f.read()

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot parse {path}: {e}") from e

    return RewriteConfig.from_dict(data)


@dataclass
class ServerConfig:
    """
    Configuration for the bundled rewriting server.

    The server puts the rewrite middleware in front of either a static
    directory or an upstream HTTP service:

        ServerConfig(upstream="http://127.0.0.1:3000")
        ServerConfig(static_dir="./public")
    """

    host: str = "127.0.0.1"
    """Address to bind. "0.0.0.0" for containers."""

    port: int = 8080

    config_path: Optional[str] = None
    """JSON or YAML file with the rewrite rules."""

    upstream: Optional[str] = None
    """Base URL requests are proxied to."""

    static_dir: Optional[str] = None
    """Directory served when no upstream is configured."""

    log_level: str = "INFO"

    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    server_name: str = "bodyrewrite/1.0"

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        REWRITE_HOST        bind address (default: 127.0.0.1)
        REWRITE_PORT        port (default: 8080)
        REWRITE_CONFIG      rewrite rules file
        REWRITE_UPSTREAM    upstream base URL
        REWRITE_STATIC_DIR  static directory
        REWRITE_LOG_LEVEL   logging level (default: INFO)
        REWRITE_LOG_FORMAT  access log format (default: text)
        """
        return cls(
            host=os.getenv("REWRITE_HOST", "127.0.0.1"),
            port=int(os.getenv("REWRITE_PORT", "8080")),
            config_path=os.getenv("REWRITE_CONFIG"),
            upstream=os.getenv("REWRITE_UPSTREAM"),
            static_dir=os.getenv("REWRITE_STATIC_DIR"),
            log_level=os.getenv("REWRITE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("REWRITE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """Fail fast on values the server cannot run with."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {self.log_level}")

        if self.log_format not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")

        if self.upstream and self.static_dir:
            raise ValueError("upstream and static_dir are mutually exclusive")

        if not self.upstream and not self.static_dir:
            raise ValueError("one of upstream or static_dir is required")
