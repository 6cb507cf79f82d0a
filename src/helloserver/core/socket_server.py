"""
=============================================================================
TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop.

=============================================================================
THE SOCKET LIFECYCLE
=============================================================================

    socket()   Create a TCP endpoint
       │
    bind()     Claim IP:PORT           ← fails fast if the port is taken
       │
    listen()   Start queueing clients  ← the kernel accept queue
       │
    accept()   Take one client         ← the only place the loop waits
       │
    handler()  Write response, close   ← one connection at a time
       │
       └──► back to accept()

Only one connection is ever in flight. While the handler runs, new
clients wait in the kernel's accept queue (sized by `backlog`) and are
served in the order the OS hands them out.

=============================================================================
SO_REUSEADDR vs SO_REUSEPORT
=============================================================================

SO_REUSEADDR lets a restarted server bind while old connections from the
previous run sit in TIME_WAIT. It does NOT let two listeners share the
port: if another process is listening on 9999, bind() still fails.

SO_REUSEPORT would let a second listener bind the same port and steal
half the connections. It is deliberately not set: "port already in use"
must stay a fatal startup error.

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (kill, docker stop) request a shutdown when
the server runs on the main thread. The accept loop polls with a short
timeout so it notices the request within a second. Signal handlers can
only be installed from the main thread; a server started elsewhere (for
example from a test) is stopped by calling shutdown() directly.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


# How often accept() wakes up to check for a shutdown request.
ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Low-level TCP socket server.

    Manages the listening socket and hands each accepted client to a
    callback, synchronously.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(handler)                                                    │
    │        ├──► _create_socket()   socket() + SO_REUSEADDR               │
    │        ├──► bind()             OSError here is fatal, re-raised      │
    │        ├──► listen()                                                 │
    │        ├──► _setup_signals()   main thread only                      │
    │        └──► _accept_loop()     blocks until shutdown()               │
    │                                                                      │
    │    shutdown()        _running = False                                │
    │    _cleanup()        restore signals, close listening socket         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            with conn:
                conn.send_response(payload)

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        The socket is not created until start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening; cleared again on stop
        self._ready_event = threading.Event()
        self._shutdown_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        Get the server's bound address (IP, port).

        Once listening, this reports the real port, which differs from
        the configured one when port 0 was requested.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create and configure the listening socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # accept() wakes up periodically so shutdown() is noticed
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers that request a graceful shutdown."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and serve connections until shutdown() is called.

        Args:
            connection_handler: Called with each accepted Connection, on
                                this thread. The next accept() happens only
                                after it returns.

        Raises:
            OSError: The address could not be bound (port in use, missing
                     privilege). Nothing has been served at that point.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._running = True
        self._shutdown_event.clear()

        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept and hand off connections, one at a time.

        An accept() failure abandons only that attempt: it is logged with
        its traceback and the loop carries on. There is no retry and no
        backoff.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Poll tick, not an error
                continue
            except OSError:
                if not self._running or self._socket.fileno() == -1:
                    break
                logger.exception("Accept error")
                continue

            conn = Connection(
                socket=client_socket,
                address=client_address,
                linger_timeout=self.config.linger_timeout,
            )
            logger.debug(f"[{conn.id}] Accepted connection from {conn.client_ip}:{conn.client_port}")

            connection_handler(conn)

    def shutdown(self):
        """
        Request the accept loop to stop.

        Safe to call from a signal handler or another thread, and more
        than once.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        """Release the listening socket."""
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the socket is bound and listening.

        Returns:
            True if the server is listening, False on timeout.
        """
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the server to shut down.

        Returns:
            True if shutdown completed, False if timeout.
        """
        return self._shutdown_event.wait(timeout)
