"""
=============================================================================
BODYREWRITE CLI ENTRY POINT
=============================================================================

Runs the bundled server: the rewrite middleware in front of an upstream
service or a static directory.

=============================================================================
USAGE
=============================================================================

    # Rewrite responses of a local service
    python -m bodyrewrite --upstream http://127.0.0.1:3000 --config rules.yaml

    # Rewrite files served from a directory
    python -m bodyrewrite --static ./public --config rules.json

    # Listen on all interfaces (for containers)
    python -m bodyrewrite --host 0.0.0.0 --upstream http://app:3000

Options not given on the command line fall back to REWRITE_* environment
variables (see ServerConfig.from_env), then to defaults.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import ConfigError, ServerConfig, create_config, load_config
from .server import build_app, serve, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bodyrewrite",
        description="HTTP server rewriting response bodies with regular expressions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bodyrewrite --upstream http://127.0.0.1:3000 --config rules.yaml
  bodyrewrite --static ./public --config rules.json --port 3000
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # REWRITE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Rewrite rules file (.json, .yaml or .yml)",
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--upstream", "-u",
        default=None,
        help="Upstream base URL to proxy to (e.g. http://127.0.0.1:3000)",
    )
    source.add_argument(
        "--static", "-s",
        default=None,
        help="Directory to serve files from",
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"bodyrewrite {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Overlay command-line arguments on the environment configuration."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.config is not None:
        config.config_path = args.config
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    # An explicit source replaces whatever the environment picked
    if args.upstream is not None:
        config.upstream, config.static_dir = args.upstream, None
    if args.static is not None:
        config.upstream, config.static_dir = None, args.static

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        config.validate()
        setup_logging(config.log_level)

        if config.config_path:
            rewrite_config = load_config(config.config_path)
        else:
            rewrite_config = create_config()

        app = build_app(config, rewrite_config)
    except ConfigError as e:
        print(f"Invalid rewrite configuration: {e}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    serve(app, host=config.host, port=config.port, server_name=config.server_name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
