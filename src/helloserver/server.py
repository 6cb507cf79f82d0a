"""
=============================================================================
HELLO SERVER
=============================================================================

Ties the socket server to the fixed response.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    1. CLIENT CONNECTS
       └── SocketServer accepts the TCP connection

    2. WRITE RESPONSE
       └── HELLO_RESPONSE is sent in one sendall()
           (the request, if any, is never read)

    3. CLOSE
       └── Connection is closed on every path, success or failure

    4. NEXT
       └── Back to accept(); the next client is served only now

=============================================================================
ERROR HANDLING
=============================================================================

    Bind failure         → logged, OSError propagates out of run()
    Accept failure       → logged with traceback, loop continues
    Write failure        → logged with traceback, connection closed,
                           loop continues

=============================================================================
"""

import logging
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection
from .http import HELLO_RESPONSE


logger = logging.getLogger(__name__)


class HelloServer:
    """
    Serves the same "Hello world" response to every TCP client.

    Example:
        server = HelloServer()
        server.run()  # Blocks; listens on 0.0.0.0:9999
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Uses the fixed defaults if not
                    provided.

        Raises:
            ValueError: The configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._payload = HELLO_RESPONSE
        self._connections_served = 0

    @property
    def connections_served(self) -> int:
        """Number of connections that received the full response."""
        return self._connections_served

    @property
    def address(self):
        """The bound (host, port), or the configured one before start."""
        return self._socket_server.address

    def run(self):
        """
        Start the server (blocking).

        Returns when shutdown() is called or a SIGINT/SIGTERM arrives.

        Raises:
            OSError: The listening port could not be bound.
        """
        self._setup_logging()

        logger.info(f"Starting hello server on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self.handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

        logger.info(f"Server stopped after {self._connections_served} connections")

    def shutdown(self):
        """Ask the accept loop to stop."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is bound (see SocketServer)."""
        return self._socket_server.wait_until_ready(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket has been released."""
        return self._socket_server.wait_for_shutdown(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("helloserver").setLevel(level)

    def handle_connection(self, conn: Connection):
        """
        Write the fixed response and close the connection.

        An I/O error abandons this connection only; it is logged and the
        caller's loop keeps running.
        """
        with conn:
            try:
                conn.send_response(self._payload)
            except OSError:
                logger.exception(f"[{conn.id}] Failed to write response to {conn.client_ip}:{conn.client_port}")
                return

        self._connections_served += 1
        logger.debug(f"[{conn.id}] Served {len(self._payload)} bytes")
