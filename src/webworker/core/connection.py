"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the line-oriented read and the
plain write the response pipeline needs.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        GET /index.html HTTP/1.1\r\n
        Host: localhost\r\n
        \r\n

    Server might receive:
        First recv():  "GET /ind"                (incomplete!)
        Second recv(): "ex.html HTTP/1.1\r\nHo"  (rest + start of header)
        Third recv():  "st: localhost\r\n\r\n"

The request reader works line by line, so the connection keeps a
buffered file object (socket.makefile) over the socket. readline()
blocks until a whole line has arrived, the client closes, or the read
timeout expires. No polling loop is needed.

=============================================================================
ONE REQUEST, THEN CLOSE
=============================================================================

    NEW ──────► READING ──────► WRITING ──────► CLOSING ──────► CLOSED
     │             │               │                ▲
     └─────────────┴───────────────┴── on error ────┘

There is no keep-alive: every connection carries exactly one request and
one response, and the end of the response is signaled by closing the
connection.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import BinaryIO, Optional


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Used for logging and to make close() idempotent.
    """
    NEW = "new"            # Just accepted, nothing read yet
    READING = "reading"    # Reading the request header
    WRITING = "writing"    # Sending the response
    CLOSING = "closing"    # Shutdown sequence running
    CLOSED = "closed"      # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple. AF_UNIX peers report "".
        id: Short connection identifier used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        timeout: Read deadline in seconds. None blocks forever.
        bytes_sent: Total bytes written to the client.

    Usage:
        with Connection(client_socket, client_address) as conn:
            line = conn.readline()
            conn.write(b"HTTP/1.1 200 OK\\r\\n...")
        # Connection closed here, even if the block raised
    """

    # Required parameters
    socket: socket.socket
    address: tuple = ("", 0)

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = 30.0
    bytes_sent: int = 0

    # Buffered reader over the socket (not shown in repr)
    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        """Configure the socket and open the buffered reader."""
        # settimeout(None) means plain blocking mode
        self.socket.settimeout(self.timeout)
        self._reader = self.socket.makefile("rb")

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        if isinstance(self.address, tuple) and self.address:
            return str(self.address[0])
        return str(self.address)

    @property
    def client_port(self) -> int:
        """Get the client port."""
        if isinstance(self.address, tuple) and len(self.address) > 1:
            return self.address[1]
        return 0

    @property
    def log_prefix(self) -> str:
        return f"[{self.id}] "

    # =========================================================================
    # READING
    # =========================================================================

    def readline(self, size: int = -1) -> bytes:
        """
        Read one line, including its terminator.

        Args:
            size: Maximum bytes to return. A longer line is returned in
                  pieces by successive calls.

        Returns:
            The line, or b"" once the client has closed its side.

        Raises:
            TimeoutError: If no complete line arrives within timeout.
            OSError: If the connection fails.
        """
        self.state = ConnectionState.READING
        return self._reader.readline(size)

    # =========================================================================
    # WRITING
    # =========================================================================

    def write(self, data: bytes) -> int:
        """
        Send bytes to the client.

        Uses sendall(), which blocks until every byte is handed to the
        kernel. send() alone might send only part of the data.

        Raises:
            OSError: If the client went away (BrokenPipeError,
                     ConnectionResetError, timeout).
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)
        self.bytes_sent += len(data)
        return len(data)

    def flush(self) -> None:
        """Writes are unbuffered; present so the connection acts as a stream."""

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR): sends FIN, the client sees end of response
        2. Discard unread input already buffered by the kernel, so the
           close does not turn into a reset that could destroy the
           response before the client reads it
        3. close(): release the file descriptors

        Safe to call more than once.
        """
        if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        try:
            # Non-blocking: only drains what has already arrived
            self.socket.setblocking(False)
            while self.socket.recv(4096):
                pass
        except OSError:
            pass  # Nothing (more) to read, or the socket is dead

        try:
            if self._reader is not None:
                self._reader.close()
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.bytes_sent} bytes sent")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
