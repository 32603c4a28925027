"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

Entry point for `python -m simplehttp`.

    1. argparse reads CLI arguments (environment supplies the defaults)
    2. ServerConfig + HTTPServer are constructed
    3. server.run() starts the server

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig
from .server import HTTPServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Create the argument parser, using `defaults` for every option."""
    parser = argparse.ArgumentParser(
        prog="simplehttp",
        description="Serve files and directory listings from a directory over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m simplehttp                      # Serve the current directory
  python -m simplehttp --root ./public      # Serve ./public
  python -m simplehttp --host 0.0.0.0       # Listen on all interfaces
  python -m simplehttp -p 3000 -l DEBUG     # Custom port, verbose logs
        """
    )

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
        "--root", "-r",
        default=defaults.root_dir,
        help=f"Directory to serve (default: {defaults.root_dir})"
    )

    parser.add_argument(
        "--log-level", "-l",
        default=defaults.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help=f"Logging verbosity (default: {defaults.log_level})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"simplehttp {__version__}"
    )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    defaults = ServerConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        root_dir=args.root,
        timeout=defaults.timeout,
        log_level=args.log_level,
    )

    try:
        server = HTTPServer(config)
        server.run()
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
