"""
=============================================================================
COMMAND-LINE ENTRY POINT
=============================================================================

Run the server:

    python -m helloserver
    helloserver                      # console script

The listening address is fixed (0.0.0.0:9999). The only flags are meta
flags that do not change what is served.

Exit status:
    0  stopped by SIGINT/SIGTERM
    1  fatal startup error (port in use, permission denied)

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import HelloServer
from .config import ServerConfig


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="helloserver",
        description="Answer every TCP connection on port 9999 with a fixed HTTP 'Hello world' response",
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"helloserver {__version__}"
    )

    args = parser.parse_args(argv)

    server = HelloServer(ServerConfig(log_level=args.log_level))

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
