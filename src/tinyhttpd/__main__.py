"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

Run the server:

    python -m tinyhttpd                       # Port from ./port.txt
    python -m tinyhttpd --port-file my.txt    # Port from another file
    python -m tinyhttpd --port 3000           # Skip the file entirely
    tinyhttpd --log-level DEBUG               # Installed console script

Stop it with Ctrl+C (SIGINT) or SIGTERM. The server finishes the
connection it is handling, closes the listening socket and exits 0.

=============================================================================
EXIT CODES
=============================================================================

    0   Stopped by a signal
    1   Configuration error (no/invalid port) or socket setup failure

=============================================================================
"""

import argparse
import os
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, DEFAULT_PORT_FILE, read_port_file
from .core import shutdown_on_signals
from .errors import ConfigError, ServerError
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tinyhttpd",
        description="Single-connection HTTP/1.1 server that answers GET /",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m tinyhttpd                       # Port from ./port.txt
  python -m tinyhttpd --port-file conf.txt  # Port from conf.txt
  python -m tinyhttpd --port 3000           # Explicit port
  python -m tinyhttpd --host 127.0.0.1      # Localhost only
        """
    )

    parser.add_argument(
        "--port-file", "-f",
        default=DEFAULT_PORT_FILE,
        help=f"File holding the port number (default: {DEFAULT_PORT_FILE})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on; overrides the port file and TINYHTTPD_PORT"
    )

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0, all interfaces)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--exit-on-accept-error",
        action="store_true",
        help="Stop the server if accepting a connection fails"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"tinyhttpd {__version__}"
    )

    return parser


def load_config(args: argparse.Namespace) -> ServerConfig:
    """
    Build the configuration from CLI arguments, environment and port file.

    The port file is only read when neither --port nor TINYHTTPD_PORT
    supplies a port. TINYHTTPD_PORT is not looked at when --port is given.

    Raises:
        ConfigError: If no valid port can be obtained.
    """
    config = ServerConfig(
        port_file=args.port_file,
        exit_on_accept_error=args.exit_on_accept_error,
    )

    if args.port is None and "TINYHTTPD_PORT" not in os.environ:
        config.port = read_port_file(config.port_file)

    config = ServerConfig.from_env(config, include_port=args.port is None)

    if args.port is not None:
        config.port = args.port
    if args.host is not None:
        config.host = args.host
    if args.log_level is not None:
        config.log_level = args.log_level

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
        server = HTTPServer(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        with shutdown_on_signals(server.shutdown_token):
            server.run()
    except ServerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
