"""
=============================================================================
LINESERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (127.0.0.1:8080, Fibonacci, 30s idle timeout)
    python -m lineserver

    # Custom port and a short idle timeout
    python -m lineserver --port 9000 --idle-timeout 10

    # Listen on all interfaces (for containers)
    python -m lineserver --host 0.0.0.0

    # Different computation
    python -m lineserver --service factorial

Settings not given on the command line come from LINESERVER_* environment
variables, then from the ServerConfig defaults.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .compute import available_services
from .config import LOG_FORMATS, ServerConfig
from .errors import ConfigError
from .server import LineServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lineserver",
        description="Concurrent line-protocol TCP server on blocking sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m lineserver                         # Run with defaults
  python -m lineserver --port 9000             # Custom port
  python -m lineserver --host 0.0.0.0          # Listen on all interfaces
  python -m lineserver --idle-timeout 10       # Close idle clients after 10s
  python -m lineserver --service factorial     # Answer with n!
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # SESSION ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--idle-timeout", "-t",
        type=float,
        default=None,
        help="Seconds to wait for a request before closing the connection (default: 30)"
    )

    parser.add_argument(
        "--service", "-s",
        choices=available_services(),
        default=None,
        help="Computation to answer requests with (default: fibonacci)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"lineserver {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then every flag that was actually given."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.idle_timeout is not None:
        config.idle_timeout = args.idle_timeout
    if args.service is not None:
        config.service = args.service
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit status: 0 after a clean shutdown, 1 if the
        configuration is invalid or the port cannot be bound.
    """
    args = build_parser().parse_args(argv)

    try:
        server = LineServer(config_from_args(args))
        server.run(banner=True)
    except (ConfigError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
