"""
Unit tests for Connection and per-connection handling, using fake sockets.
"""

import logging
import socket
import time
from unittest import mock

import pytest

from helloserver import HelloServer, ServerConfig
from helloserver.core import Connection, ConnectionState
from helloserver.http import HELLO_RESPONSE


def fake_socket() -> mock.MagicMock:
    sock = mock.MagicMock(spec=socket.socket)
    sock.recv.return_value = b""
    return sock


def make_connection(sock=None) -> Connection:
    return Connection(socket=sock or fake_socket(), address=("10.0.0.7", 54321))


class TestConnection:

    def test_accepted_socket_is_blocking(self):
        sock = fake_socket()
        make_connection(sock)
        sock.settimeout.assert_called_once_with(None)

    def test_send_response_single_sendall(self):
        sock = fake_socket()
        conn = make_connection(sock)

        conn.send_response(b"payload")

        sock.sendall.assert_called_once_with(b"payload")
        assert conn.state == ConnectionState.WRITING

    def test_send_response_propagates_os_error(self):
        sock = fake_socket()
        sock.sendall.side_effect = BrokenPipeError("gone")
        conn = make_connection(sock)

        with pytest.raises(OSError):
            conn.send_response(b"payload")

    def test_close_half_closes_then_closes(self):
        sock = fake_socket()
        conn = make_connection(sock)

        conn.close()

        sock.shutdown.assert_called_once_with(socket.SHUT_WR)
        sock.close.assert_called_once()
        assert conn.state == ConnectionState.CLOSED

    def test_close_drains_unread_input(self):
        sock = fake_socket()
        sock.recv.side_effect = [b"GET / HTTP/1.1\r\n", b"\r\n", b""]
        conn = make_connection(sock)

        conn.close()

        assert sock.recv.call_count == 3
        sock.close.assert_called_once()

    def test_close_tolerates_dead_peer(self):
        sock = fake_socket()
        sock.shutdown.side_effect = OSError("not connected")
        sock.recv.side_effect = ConnectionResetError("reset")
        conn = make_connection(sock)

        conn.close()

        sock.close.assert_called_once()
        assert conn.state == ConnectionState.CLOSED

    def test_close_drain_stops_at_linger_deadline(self):
        sock = fake_socket()
        sock.recv.return_value = b"x"  # Client that never stops sending
        conn = Connection(socket=sock, address=("10.0.0.7", 54321), linger_timeout=0.05)

        started = time.monotonic()
        conn.close()

        assert time.monotonic() - started < 1.0
        sock.close.assert_called_once()
        assert conn.state == ConnectionState.CLOSED

    def test_close_without_linger_skips_drain(self):
        sock = fake_socket()
        conn = Connection(socket=sock, address=("10.0.0.7", 54321), linger_timeout=0)

        conn.close()

        sock.recv.assert_not_called()
        sock.close.assert_called_once()

    def test_close_is_idempotent(self):
        sock = fake_socket()
        conn = make_connection(sock)

        conn.close()
        conn.close()

        sock.close.assert_called_once()

    def test_context_manager_closes_on_error(self):
        sock = fake_socket()

        with pytest.raises(RuntimeError):
            with make_connection(sock):
                raise RuntimeError("boom")

        sock.close.assert_called_once()

    def test_client_address(self):
        conn = make_connection()

        assert conn.client_ip == "10.0.0.7"
        assert conn.client_port == 54321


class TestHandleConnection:
    """Tests for HelloServer.handle_connection."""

    def test_writes_payload_and_closes(self):
        server = HelloServer(ServerConfig(port=0))
        sock = fake_socket()

        server.handle_connection(make_connection(sock))

        sock.sendall.assert_called_once_with(HELLO_RESPONSE)
        sock.close.assert_called_once()
        assert server.connections_served == 1

    def test_write_failure_is_logged_and_contained(self, caplog):
        server = HelloServer(ServerConfig(port=0))
        sock = fake_socket()
        sock.sendall.side_effect = ConnectionResetError("reset by peer")

        with caplog.at_level(logging.ERROR, logger="helloserver"):
            server.handle_connection(make_connection(sock))

        sock.close.assert_called_once()
        assert server.connections_served == 0
        assert "Failed to write response" in caplog.text
        assert caplog.records[-1].exc_info is not None

    def test_non_io_errors_propagate(self):
        server = HelloServer(ServerConfig(port=0))
        sock = fake_socket()
        sock.sendall.side_effect = RuntimeError("bug")

        with pytest.raises(RuntimeError):
            server.handle_connection(make_connection(sock))

        sock.close.assert_called_once()
