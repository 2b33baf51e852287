"""
=============================================================================
WEBWORKER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on localhost:8080
    python -m webworker

    # Custom port and document root
    python -m webworker --port 3000 --root ./public

    # Listen on all interfaces (for containers)
    python -m webworker --host 0.0.0.0

    # "200 OK" even for the 404 page
    python -m webworker --always-ok

Every option defaults to its WEBWORKER_* environment variable (see
ServerConfig.from_env), so command-line arguments win over the
environment, which wins over the built-in defaults.

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .server import WebServer
from .config import ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webworker",
        description="Minimal static file web server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webworker                         # Serve . on 127.0.0.1:8080
  python -m webworker --port 3000             # Custom port
  python -m webworker --root ./public         # Custom document root
  python -m webworker --host 0.0.0.0          # Listen on all interfaces
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help=f"Client read timeout in seconds (default: {defaults.timeout})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.document_root,
        help=f"Document root to serve files from (default: {defaults.document_root})"
    )

    parser.add_argument(
        "--server-name",
        default=defaults.server_name,
        help=f"Server header value (default: {defaults.server_name})"
    )

    parser.add_argument(
        "--always-ok",
        action="store_true",
        default=defaults.always_ok_status,
        help="Answer 200 OK even when sending the 404 page"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"webworker {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Parse arguments, build the server and run it until interrupted."""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        # Malformed WEBWORKER_PORT / WEBWORKER_TIMEOUT
        print(f"Error: invalid environment: {e}", file=sys.stderr)
        sys.exit(1)

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        document_root=args.root,
        server_name=args.server_name,
        always_ok_status=args.always_ok,
        log_level=args.log_level,
    )

    try:
        server = WebServer(config)
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
