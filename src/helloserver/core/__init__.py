"""
Core networking components.

- SocketServer: listening socket and sequential accept loop
- Connection: one accepted client, written once and closed
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = ["SocketServer", "Connection", "ConnectionState"]
