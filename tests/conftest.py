"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from helloserver import HelloServer, ServerConfig


EXPECTED_RESPONSE = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: text/plain\r\n"
    b"Content-Length: 11\r\n"
    b"Connection: close\r\n"
    b"\r\n"
    b"Hello world"
)


@pytest.fixture
def expected_response() -> bytes:
    """The exact bytes every client must receive."""
    return EXPECTED_RESPONSE


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration on an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        linger_timeout=0.2,
        log_level="WARNING",
    )


def fetch_response(port: int, request: bytes = b"", timeout: float = 5.0) -> bytes:
    """Connect, optionally send bytes, and read until the server closes."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as s:
        if request:
            s.sendall(request)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def fetch():
    """Client helper: connect, optionally send, read until EOF."""
    return fetch_response


class ServerThread:
    """Runs a HelloServer in a background thread."""

    def __init__(self, server: HelloServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def wait_for_served(self, count: int, timeout: float = 5.0) -> bool:
        """Poll until the server has finished `count` connections."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.server.connections_served >= count:
                return True
            time.sleep(0.01)
        return False


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A HelloServer listening on 127.0.0.1 with an ephemeral port."""
    srv = ServerThread(HelloServer(config))
    srv.start()

    yield srv

    srv.stop()
