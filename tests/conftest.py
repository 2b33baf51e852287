"""
pytest configuration and fixtures.
"""

import socket
import threading
from datetime import datetime, timezone
from typing import Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from webworker import WebServer, WebWorker, ServerConfig, WorkerConfig
from webworker.core import Connection


# Thursday; every Date header and <cs371date> in the unit tests shows this
FIXED_NOW = datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc)
FIXED_DATE = "Thu, 15 Jan 2026 12:30:45 GMT"

INDEX_HTML = b"<html><body><cs371server> says hi</body></html>\n"
STAMP_TXT = b"Served on <cs371date> by <cs371server>\r\nline two\r\n"
# Contains a placeholder on purpose: binary files are never substituted
LOGO_PNG = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) + b"<cs371server>\x00\xff"
SECRET_TXT = b"top secret\n"


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """
    A small document root:

        tmp_path/
        ├── secret.txt        (outside the root)
        └── www/
            ├── index.html
            ├── stamp.txt
            ├── logo.png
            ├── blob.zzqx     (unknown extension)
            ├── latin1.txt    (not valid UTF-8)
            ├── docs/index.html
            └── empty/
    """
    (tmp_path / "secret.txt").write_bytes(SECRET_TXT)

    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "stamp.txt").write_bytes(STAMP_TXT)
    (root / "logo.png").write_bytes(LOGO_PNG)
    (root / "blob.zzqx").write_bytes(b"\x00\x01<cs371date>\x02")
    (root / "latin1.txt").write_bytes(b"caf\xe9 <cs371server>\n")
    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_bytes(b"<p>docs by <cs371server></p>\n")
    (root / "empty").mkdir()
    return root


@pytest.fixture
def worker_config(doc_root: Path) -> WorkerConfig:
    """Worker settings serving doc_root with a frozen clock."""
    return WorkerConfig(document_root=str(doc_root), clock=lambda: FIXED_NOW)


@pytest.fixture
def socket_pair() -> Generator[Tuple[socket.socket, Connection], None, None]:
    """
    A connected (client socket, server-side Connection) pair.

    Backed by socket.socketpair(), so no port is needed.
    """
    client, server = socket.socketpair()
    conn = Connection(server, ("127.0.0.1", 54321), timeout=2.0)
    client.settimeout(5.0)

    yield client, conn

    conn.close()
    client.close()


def recv_all(sock: socket.socket) -> bytes:
    """Read until the peer closes the connection."""
    chunks = []
    while True:
        data = sock.recv(4096)
        if not data:
            break
        chunks.append(data)
    return b"".join(chunks)


def split_response(raw: bytes) -> Tuple[str, dict, bytes]:
    """Split a raw response into (status line, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name] = value.strip()
    return lines[0], headers, body


def serve_one(
    client: socket.socket,
    conn: Connection,
    request: Optional[bytes],
    config: WorkerConfig,
) -> Tuple[bytes, WebWorker]:
    """
    Run a WebWorker on conn in a thread and collect what the client sees.

    request=None sends nothing and leaves the client side open.
    """
    if request is not None:
        client.sendall(request)

    worker = WebWorker(conn, config)
    thread = threading.Thread(target=worker.run, daemon=True)
    thread.start()

    raw = recv_all(client)
    thread.join(timeout=5.0)
    assert not thread.is_alive()
    return raw, worker


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # not a test class despite the name

    def __init__(self, server: WebServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def request(self, raw: bytes) -> bytes:
        """Send a raw request and return everything up to the close."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw)
            return recv_all(sock)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(doc_root: Path) -> Generator[TestServer, None, None]:
    """A WebServer on an OS-assigned port serving doc_root."""
    server = WebServer(ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        document_root=str(doc_root),
        log_level="WARNING",
    ))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
