"""
Command-line entry point.

    python -m assetserver                          # everything from env
    python -m assetserver --root ./dist --port 3000
    APP_ROOT=/static python -m assetserver --no-cache

Flags override environment variables, which override the defaults in
ServerConfig. Invalid configuration or an unbindable port exits with
status 1.
"""

import argparse
import sys
from dataclasses import replace
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, ConfigError, LOG_FORMATS, LOG_LEVELS
from .server import AssetServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetserver",
        description="GET-only static asset server with restart-seeded ETag caching",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  HOST, PORT, WEB_ROOT, APP_ROOT, NO_CACHE, COMPRESS, WORKERS,
  LOG_LEVEL, LOG_FORMAT

Examples:
  python -m assetserver --root ./dist
  python -m assetserver --root ./dist --prefix /static
  python -m assetserver --no-cache --log-level DEBUG
        """,
    )

    parser.add_argument("--host", "-H", help="Address to bind (env HOST, default 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (env PORT, default 8080)")
    parser.add_argument("--root", "-r", dest="web_root", help="Directory to serve (env WEB_ROOT, default ./app)")
    parser.add_argument(
        "--prefix",
        dest="app_root",
        help="URL prefix stripped before file lookup (env APP_ROOT)",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        default=None,
        help="Disable ETag / Cache-Control handling (env NO_CACHE)",
    )
    parser.add_argument(
        "--no-compress",
        action="store_true",
        default=None,
        help="Disable response compression (env COMPRESS=false)",
    )
    parser.add_argument("--workers", "-w", type=int, help="Worker threads (env WORKERS, default 8)")
    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level (env LOG_LEVEL, default INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        help="Access log format (env LOG_FORMAT, default text)",
    )
    parser.add_argument("--version", "-v", action="version", version=f"assetserver {__version__}")
    return parser


def config_from_args(args: argparse.Namespace, base: ServerConfig) -> ServerConfig:
    """Apply the flags that were given on top of base."""
    overrides = {}
    for name in ("host", "port", "web_root", "app_root", "workers", "log_level", "log_format"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.no_cache:
        overrides["no_cache"] = True
    if args.no_compress:
        overrides["compress"] = False
    return replace(base, **overrides)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args, ServerConfig.from_env())
        server = AssetServer(config)
    except ConfigError as e:
        print(f"assetserver: configuration error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"assetserver: cannot listen on {config.host}:{config.port}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
