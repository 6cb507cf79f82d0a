"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the duration of a single loop
iteration: write the response once, then close.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    ┌─────────┐  send_response()  ┌─────────┐  close()  ┌─────────┐        ┌────────┐
    │   NEW   │ ────────────────► │ WRITING │ ────────► │ CLOSING │ ─────► │ CLOSED │
    └─────────┘                   └─────────┘           └─────────┘        └────────┘
         │                                                   ▲
         └───────────────── close() (write failed) ──────────┘

The server never reads the request. If the client did send one, those
bytes are still sitting unread in the kernel receive buffer when we
close, and closing a socket with unread data makes the kernel send RST
instead of FIN. An RST can reach the client before it has read our
response, and the client then sees "connection reset" rather than the
body. close() therefore half-closes first, drains briefly, and only then
releases the descriptor.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Tuple


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and idempotent close."""
    NEW = "new"              # Just accepted
    WRITING = "writing"      # Sending response data
    CLOSING = "closing"      # Shutdown sequence in progress
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents one accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        linger_timeout: Seconds to drain unread input before closing.

    Usage:
        with Connection(client_socket, client_address) as conn:
            conn.send_response(HELLO_RESPONSE)
        # Socket closed here on every exit path
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    linger_timeout: float = 0.5

    def __post_init__(self):
        # The listening socket has a poll timeout; accepted sockets inherit
        # it on some platforms. Writes must block until done.
        self.socket.settimeout(None)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return self.address[1]

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    def send_response(self, data: bytes) -> None:
        """
        Send response data to the client in a single call.

        sendall() either writes every byte or raises; there is no
        partial-write recovery and no retry.

        Raises:
            OSError: The client went away or the write failed otherwise.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR): client sees EOF right after the body
        2. drain: discard any request bytes the client sent, for at most
           linger_timeout seconds in total
        3. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        deadline = time.monotonic() + self.linger_timeout
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                if not self.socket.recv(1024):
                    break
        except OSError:
            pass  # Timeout or reset; closing anyway

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
