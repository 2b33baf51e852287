"""
Unit tests for the client connection wrapper.
"""

import socket

import pytest

from webworker.core import Connection, ConnectionState


class TestConnection:
    """Tests for Connection class."""

    def test_readline(self, socket_pair):
        """Test line-by-line reading across separate sends."""
        client, conn = socket_pair
        client.sendall(b"GET /a HT")
        client.sendall(b"TP/1.1\r\nHost: x\r\n")

        assert conn.readline() == b"GET /a HTTP/1.1\r\n"
        assert conn.readline() == b"Host: x\r\n"
        assert conn.state == ConnectionState.READING

    def test_readline_limit(self, socket_pair):
        """Test that a size limit splits a long line."""
        client, conn = socket_pair
        client.sendall(b"abcdefgh\n")

        assert conn.readline(4) == b"abcd"
        assert conn.readline(10) == b"efgh\n"

    def test_readline_eof(self, socket_pair):
        """Test that a half-closed client reads as end of stream."""
        client, conn = socket_pair
        client.shutdown(socket.SHUT_WR)

        assert conn.readline() == b""

    def test_readline_timeout(self):
        """Test that a silent client raises instead of blocking forever."""
        client, server = socket.socketpair()
        conn = Connection(server, timeout=0.1)
        try:
            with pytest.raises(OSError):
                conn.readline()
        finally:
            conn.close()
            client.close()

    def test_write_counts_bytes(self, socket_pair):
        """Test that write() sends everything and counts it."""
        client, conn = socket_pair

        assert conn.write(b"hello ") == 6
        conn.write(b"world")

        assert client.recv(100) == b"hello world"
        assert conn.bytes_sent == 11
        assert conn.state == ConnectionState.WRITING

    def test_close_sends_eof(self, socket_pair):
        """Test that closing ends the response for the client."""
        client, conn = socket_pair
        conn.write(b"body")
        conn.close()

        assert client.recv(100) == b"body"
        assert client.recv(100) == b""
        assert conn.state == ConnectionState.CLOSED

    def test_close_idempotent(self, socket_pair):
        """Test that close() can be called repeatedly."""
        _client, conn = socket_pair

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED

    def test_close_after_peer_gone(self, socket_pair):
        """Test that closing survives a client that already left."""
        client, conn = socket_pair
        client.close()

        conn.close()

        assert conn.state == ConnectionState.CLOSED

    def test_close_discards_unread_input(self, socket_pair):
        """Test that unread request bytes do not prevent a clean close."""
        client, conn = socket_pair
        client.sendall(b"GET / HTTP/1.1\r\nX-Unread: yes\r\n\r\n")
        conn.readline()
        conn.write(b"ok")

        conn.close()

        assert client.recv(100) == b"ok"
        assert client.recv(100) == b""

    def test_context_manager(self):
        """Test that leaving the with-block closes, even on error."""
        client, server = socket.socketpair()
        try:
            with pytest.raises(RuntimeError):
                with Connection(server) as conn:
                    raise RuntimeError("boom")
            assert conn.state == ConnectionState.CLOSED
        finally:
            client.close()

    def test_address_properties(self, socket_pair):
        _client, conn = socket_pair

        assert conn.client_ip == "127.0.0.1"
        assert conn.client_port == 54321
        assert conn.log_prefix == f"[{conn.id}] "

    def test_unix_address(self):
        """Test that AF_UNIX peers (empty address) are tolerated."""
        client, server = socket.socketpair()
        conn = Connection(server, "")
        try:
            assert conn.client_ip == ""
            assert conn.client_port == 0
        finally:
            conn.close()
            client.close()

    def test_unique_ids(self):
        client1, server1 = socket.socketpair()
        client2, server2 = socket.socketpair()
        conn1, conn2 = Connection(server1), Connection(server2)
        try:
            assert conn1.id != conn2.id
        finally:
            for closable in (conn1, conn2, client1, client2):
                closable.close()
