"""
=============================================================================
HTTP RESPONSE SERIALIZATION
=============================================================================

Builds the one HTTP/1.1 response this server ever sends.

=============================================================================
RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                 ← Status line                  │
    │   Content-Type: text/plain\r\n        ← Headers, insertion order     │
    │   Content-Length: 11\r\n              ← Computed from the body       │
    │   Connection: close\r\n                                              │
    │   \r\n                                ← Empty line (separator)       │
    │   Hello world                         ← Body, no trailing newline    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The bytes are built once at import time (HELLO_RESPONSE) and written
unchanged to every client. Nothing time-dependent (Date) or
server-identifying (Server) is added, so the output is deterministic
byte-for-byte.

=============================================================================
"""

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Dict, Union


HELLO_BODY = "Hello world"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

        HTTPResponse(            to_bytes()               Connection
          status=200,   ─────►   b"HTTP/1.1 200 OK\\r\\n   ─────►  sendall()
          headers={...},           Content-Type: ...
          body=b"..."              \\r\\n
        )                          Hello world"
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)  # Insertion order is wire order
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 200 OK"
        """
        return f"{self.version} {self.status.value} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for method chaining."""
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        """
        Set the response body.

        Strings are encoded as ASCII: the body length in bytes must equal
        the character count advertised by Content-Length.
        """
        if isinstance(body, str):
            self.body = body.encode("ascii")
        else:
            self.body = body
        return self

    def to_bytes(self) -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        Content-Length is filled in from the body when the caller has not
        set it. Header order is preserved exactly as inserted.

        Returns:
            Complete HTTP response as bytes ready for socket.sendall()
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("ascii") + b"\r\n"
        return header_bytes + self.body


def hello_response() -> HTTPResponse:
    """Build the fixed "Hello world" response."""
    response = HTTPResponse(status=HTTPStatus.OK).set_body(HELLO_BODY)
    return (response
        .set_header("Content-Type", "text/plain")
        .set_header("Content-Length", str(len(response.body)))
        .set_header("Connection", "close"))


# Serialized once, shared by every connection, never mutated.
HELLO_RESPONSE: bytes = hello_response().to_bytes()
