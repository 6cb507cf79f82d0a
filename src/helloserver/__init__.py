"""
=============================================================================
HELLOSERVER - A Single-Response TCP Listener
=============================================================================

Listens on TCP port 9999 on every interface and answers each connection,
one at a time, with the same HTTP/1.1 response:

    HTTP/1.1 200 OK
    Content-Type: text/plain
    Content-Length: 11
    Connection: close

    Hello world

The request is never read, nothing is routed, and the connection is
closed right after the response.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    helloserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m helloserver)
    ├── server.py            # HelloServer: write response, close
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Listening socket and accept loop
    │   └── connection.py    # Accepted-connection wrapper
    └── http/
        └── response.py      # Response serializer and fixed payload

=============================================================================
QUICK START
=============================================================================

    $ python -m helloserver
    $ curl -i http://localhost:9999/

=============================================================================
"""

__version__ = "1.0.0"

from .server import HelloServer
from .config import ServerConfig

__all__ = ["HelloServer", "ServerConfig", "__version__"]
