"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized settings for the listener.

The production values are fixed: the server always listens on every
interface on port 9999 and is not configured from flags, environment
variables or files. The dataclass exists so the values live in one place,
are validated once at startup, and can be overridden by the test suite
(port 0 lets the OS pick a free port).

=============================================================================
"""

import logging
from dataclasses import dataclass


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9999


@dataclass
class ServerConfig:
    """
    Configuration for the hello server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog

    CONNECTION SETTINGS
    - linger_timeout

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = DEFAULT_HOST
    """
    The IP address to bind to.
    "0.0.0.0" binds every IPv4 interface.
    """

    port: int = DEFAULT_PORT
    """
    The port number to listen on.
    0 asks the OS for an ephemeral port (tests only).
    """

    backlog: int = 50
    """
    Maximum number of queued connections waiting for accept().
    Connections are served one at a time, so bursts wait here.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    linger_timeout: float = 0.5
    """
    Total seconds spent draining unread client bytes after the response
    is written and before the socket is closed. This is a single deadline,
    not a per-read timeout.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    DEBUG logs every accepted and closed connection.
    """

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once by HelloServer at construction so a bad value fails
        before any socket is opened.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.linger_timeout < 0:
            raise ValueError("linger_timeout must be >= 0")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
