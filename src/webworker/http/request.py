"""
=============================================================================
REQUEST READER
=============================================================================

Reads the request header from a client stream and extracts the path of
the requested file.

=============================================================================
WHAT WE READ
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /index.html HTTP/1.1\r\n      ← sets the path               │
    │  Host: localhost:8080\r\n          ← read and ignored            │
    │  User-Agent: curl/8.5.0\r\n        ← read and ignored            │
    │  \r\n                              ← empty line = stop reading   │
    └─────────────────────────────────────────────────────────────────┘

Only the GET request line matters. Headers are consumed so the client
sees its request fully read, but none of them change the response
(no Host routing, no Content-Length, no keep-alive).

The path is the document root with the GET target appended, without
percent-decoding or normalization. The target bytes are turned into a
str with os.fsdecode, so non-ASCII names match the files on disk:

    document_root="."         GET /index.html   →   "./index.html"
    document_root="/srv/www"  GET /a/b.png      →   "/srv/www/a/b.png"

Confinement to the document root happens later, when the content writer
locates the file (see response.ContentWriter.locate).

=============================================================================
WHEN READING STOPS
=============================================================================

    1. An empty line          normal end of the request header
    2. End of stream          client closed or half-closed early
    3. A read error/timeout   logged, whatever was resolved is returned
    4. Too many bytes         max_request_size exceeded

Malformed lines never stop the loop; they are skipped.

=============================================================================
"""

import logging
import os
from typing import Optional, Protocol


logger = logging.getLogger(__name__)


class LineSource(Protocol):
    """Anything with a binary readline(), e.g. a Connection or io.BytesIO."""

    def readline(self, size: int = -1) -> bytes: ...


class RequestReader:
    """
    Extracts the resolved path from an HTTP request header.

    Stateless between calls, so one reader can serve many connections.

    Usage:
        reader = RequestReader(document_root=".")
        path = reader.read(conn)   # "./index.html", or "" if no GET line
    """

    def __init__(
        self,
        document_root: str = ".",
        max_line_size: int = 8192,
        max_request_size: int = 64 * 1024,
        log_prefix: str = "",
    ):
        """
        Args:
            document_root: Prefix for every GET target. A trailing slash
                           is dropped so "/srv/www/" and "/srv/www" agree.
            max_line_size: Longest line accepted; longer lines are skipped.
            max_request_size: Stop reading after this many bytes.
            log_prefix: Prepended to log messages (the connection id).
        """
        self.prefix = str(document_root).rstrip("/")
        self.max_line_size = max_line_size
        self.max_request_size = max_request_size
        self.log_prefix = log_prefix

    def resolve(self, target: str) -> str:
        """Map a GET target onto the document root."""
        return self.prefix + target

    def read(self, stream: LineSource) -> str:
        """
        Read request lines until the blank line and return the path.

        The first GET line wins; any later GET line is read and ignored.

        Args:
            stream: Source of request lines.

        Returns:
            The resolved path, or "" if no usable GET line was seen.
        """
        path = ""
        consumed = 0
        discarding = False  # inside an over-long line

        while True:
            # ─────────────────────────────────────────────────────────────
            # READ ONE LINE (blocks until a line, EOF or timeout)
            # ─────────────────────────────────────────────────────────────
            try:
                raw = stream.readline(self.max_line_size + 1)
            except (OSError, ValueError) as e:
                # socket.timeout is an OSError; ValueError means the
                # stream was already closed
                logger.warning(f"{self.log_prefix}Request error: {e}")
                break

            if not raw:
                logger.debug(f"{self.log_prefix}End of stream before blank line")
                break

            consumed += len(raw)
            if consumed > self.max_request_size:
                logger.warning(
                    f"{self.log_prefix}Request larger than "
                    f"{self.max_request_size} bytes, stopped reading"
                )
                break

            complete = raw.endswith(b"\n")

            # ─────────────────────────────────────────────────────────────
            # OVER-LONG LINES
            # ─────────────────────────────────────────────────────────────
            # readline(limit) hands back a long line in pieces. None of the
            # pieces may be mistaken for a request line or for the blank
            # line that ends the header.
            if discarding or (not complete and len(raw) > self.max_line_size):
                if not discarding:
                    logger.warning(
                        f"{self.log_prefix}Request line longer than "
                        f"{self.max_line_size} bytes, skipped"
                    )
                discarding = not complete
                continue

            line = raw.rstrip(b"\r\n")
            logger.debug(
                f"{self.log_prefix}Request line: "
                f"({line.decode('utf-8', 'backslashreplace')})"
            )

            if not line:
                break  # end of request header

            if path:
                continue  # first GET line already seen

            target = self._get_target(line)
            if target is not None:
                path = self.resolve(target)

        return path

    def _get_target(self, line: bytes) -> Optional[str]:
        """
        Return the target of a GET line, or None for any other line.

            b"GET /a.html HTTP/1.1"   →  "/a.html"
            b"GET"                    →  None  (no target)
            b"POST /form HTTP/1.1"    →  None
            b"Host: example.com"      →  None

        The line is split on ASCII whitespace only. The target bytes are
        decoded with the filesystem encoding (os.fsdecode), so a raw UTF-8
        name reaches the filesystem unchanged.
        """
        tokens = line.split()
        if len(tokens) < 2 or tokens[0] != b"GET":
            return None
        return os.fsdecode(tokens[1])


def read_request(stream: LineSource, document_root: str = ".") -> str:
    """
    Read one request from a stream with default limits.

    Example:
        >>> import io
        >>> read_request(io.BytesIO(b"GET /index.html HTTP/1.1\\r\\n\\r\\n"))
        './index.html'
    """
    return RequestReader(document_root).read(stream)
