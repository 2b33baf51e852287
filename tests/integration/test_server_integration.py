"""
Integration tests: a real WebServer on a real TCP port.
"""

import re
import socket
import threading

from conftest import LOGO_PNG, recv_all, split_response


HTTP_DATE = re.compile(r"^[A-Z][a-z]{2}, \d{2} [A-Z][a-z]{2} \d{4} \d{2}:\d{2}:\d{2} GMT$")


class TestWebServer:
    """End-to-end tests over TCP."""

    def test_serves_index(self, test_server):
        """Test a complete exchange with a real client socket."""
        raw = test_server.request(b"GET /index.html HTTP/1.1\r\nHost: localhost\r\n\r\n")

        status, headers, body = split_response(raw)
        assert status == "HTTP/1.1 200 OK"
        assert HTTP_DATE.match(headers["Date"])
        assert headers["Server"] == "The Unfinished Server"
        assert headers["Connection"] == "close"
        assert headers["Content-Type"] == "text/html"
        assert body == b"<html><body>The Unfinished Server says hi</body></html>\n"

    def test_date_substituted(self, test_server):
        """Test that the date token becomes an HTTP-date."""
        raw = test_server.request(b"GET /stamp.txt HTTP/1.1\r\n\r\n")

        body = split_response(raw)[2].decode()
        first_line = body.split("\r\n")[0]
        match = re.match(r"^Served on (.+) by The Unfinished Server$", first_line)
        assert match
        assert HTTP_DATE.match(match.group(1))

    def test_binary(self, test_server):
        raw = test_server.request(b"GET /logo.png HTTP/1.1\r\n\r\n")
        assert split_response(raw)[2] == LOGO_PNG

    def test_not_found(self, test_server):
        raw = test_server.request(b"GET /missing.html HTTP/1.1\r\n\r\n")
        assert raw.startswith(b"HTTP/1.1 404 Not Found\r\n")
        assert b"404 - File Not Found" in raw

    def test_traversal(self, test_server):
        raw = test_server.request(b"GET /../secret.txt HTTP/1.1\r\n\r\n")
        assert raw.startswith(b"HTTP/1.1 403 Forbidden\r\n")
        assert b"top secret" not in raw

    def test_one_request_per_connection(self, test_server):
        """Test that the server closes after the first response."""
        raw = test_server.request(
            b"GET /index.html HTTP/1.1\r\n\r\n"
            b"GET /logo.png HTTP/1.1\r\n\r\n"
        )
        assert raw.count(b"HTTP/1.1 ") == 1

    def test_concurrent_clients(self, test_server):
        """Test that several connections are served in parallel."""
        results = [None] * 8

        def fetch(i):
            results[i] = test_server.request(b"GET /index.html HTTP/1.1\r\n\r\n")

        threads = [threading.Thread(target=fetch, args=(i,)) for i in range(len(results))]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert all(r is not None and r.startswith(b"HTTP/1.1 200 OK\r\n") for r in results)

    def test_slow_client_does_not_block_others(self, test_server):
        """Test that a client that sends nothing does not stall the server."""
        with socket.create_connection(("127.0.0.1", test_server.port), timeout=5.0) as idle:
            idle.sendall(b"GET /index.html HTTP/1.1\r\n")  # no blank line yet

            raw = test_server.request(b"GET /logo.png HTTP/1.1\r\n\r\n")
            assert split_response(raw)[2] == LOGO_PNG

            idle.sendall(b"\r\n")
            assert recv_all(idle).startswith(b"HTTP/1.1 200 OK\r\n")

    def test_address_reports_bound_port(self, test_server):
        assert test_server.port > 0
        assert test_server.server.is_running

    def test_shutdown(self, test_server):
        """Test that shutdown stops accepting connections."""
        test_server.stop()

        assert not test_server.server.is_running
