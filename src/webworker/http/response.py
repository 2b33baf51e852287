"""
=============================================================================
RESPONSE WRITERS
=============================================================================

Writes the HTTP response for one connection in two strictly ordered steps:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    RESPONSE ON THE WIRE                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HeaderWriter                                                       │
    │   ────────────                                                       │
    │   HTTP/1.1 200 OK\r\n                                                │
    │   Date: Thu, 15 Jan 2026 12:30:45 GMT\r\n                            │
    │   Server: The Unfinished Server\r\n                                  │
    │   Connection: close\r\n                                              │
    │   Content-Type: text/html\r\n                                        │
    │   \r\n                        ← exactly one blank line              │
    │                                                                      │
    │   ContentWriter                                                      │
    │   ─────────────                                                      │
    │   <html>... body ...</html>   ← ends when the connection closes     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no Content-Length header. The response is delimited by closing
the connection, which is why "Connection: close" is always sent.

The header format is positional: once a body byte has gone out, nothing
can be added to the header. The caller must finish HeaderWriter.write()
before calling ContentWriter.write().

=============================================================================
THREE WAYS TO SEND A BODY
=============================================================================

    Resource          Content type        Body
    ────────          ────────────        ────
    missing           (any)               404 HTML fragment
    outside root      (any)               403 HTML fragment
    regular file      text/*, json, ...   file text with placeholders replaced
    regular file      anything else       file bytes, copied verbatim

Placeholders in text files:

    <cs371date>    →  Thu, 15 Jan 2026 12:30:45 GMT
    <cs371server>  →  The Unfinished Server

=============================================================================
"""

import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol

from ..config import WorkerConfig
from .mime_types import is_text_type
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


class Writable(Protocol):
    """Anything with a binary write(), e.g. a Connection or io.BytesIO."""

    def write(self, data: bytes) -> object: ...


# =============================================================================
# ERROR BODIES
# =============================================================================

NOT_FOUND_BODY = (
    "<html><head></head><body>\n"
    "<h1>Error!</h1>\n"
    "<h2>404 - File Not Found</h2>\n"
    "<h4>The file mentioned above could not be found on our servers. "
    "The file may have been damaged, moved, deleted, or misspelled.</h4>"
    "</body></html>\n"
).encode("utf-8")

FORBIDDEN_BODY = (
    "<html><head></head><body>\n"
    "<h1>Error!</h1>\n"
    "<h2>403 - Forbidden</h2>\n"
    "<h4>The file mentioned above lies outside the directory served "
    "by this server.</h4>"
    "</body></html>\n"
).encode("utf-8")

ERROR_BODIES = {
    HTTPStatus.NOT_FOUND: NOT_FOUND_BODY,
    HTTPStatus.FORBIDDEN: FORBIDDEN_BODY,
}

# Content type announced for the error bodies above
ERROR_CONTENT_TYPE = "text/html"


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Thu, 15 Jan 2026 12:30:45 GMT

    Aware datetimes are converted to UTC; naive ones are taken as UTC.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    # Weekday names (0=Monday in Python's datetime)
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


@dataclass(frozen=True)
class Resource:
    """
    Outcome of looking up a resolved path on disk.

    Attributes:
        path: The resolved request path ("" if there was no GET line).
        file: The regular file to send, or None.
        status: 200 if file is set, otherwise 403 or 404.
    """
    path: str
    file: Optional[Path]
    status: HTTPStatus

    @property
    def found(self) -> bool:
        return self.file is not None


class HeaderWriter:
    """
    Writes the status line and the fixed response headers.

    Usage:
        headers = HeaderWriter(config)
        headers.write(conn, "text/html")
        headers.write(conn, "", HTTPStatus.NOT_FOUND)
    """

    def __init__(self, config: WorkerConfig):
        self.config = config

    def status_for(self, status: HTTPStatus) -> HTTPStatus:
        """The status actually sent, honoring always_ok_status."""
        return HTTPStatus.OK if self.config.always_ok_status else status

    def render(self, content_type: str, status: HTTPStatus = HTTPStatus.OK) -> bytes:
        """
        Build the header block.

        Args:
            content_type: Value of the Content-Type header. May be empty,
                          the field is still sent.
            status: Status of the located resource.

        Returns:
            The header bytes, ending with the blank line.
        """
        status = self.status_for(status)
        lines = [
            f"HTTP/1.1 {status.value} {status.phrase}",
            f"Date: {format_http_date(self.config.clock())}",
            f"Server: {self.config.server_name}",
            "Connection: close",
            f"Content-Type: {content_type}",
            "",
        ]
        # Header values are latin-1 on the wire (RFC 7230)
        return "\r\n".join(lines).encode("latin-1", errors="replace") + b"\r\n"

    def write(
        self,
        out: Writable,
        content_type: str,
        status: HTTPStatus = HTTPStatus.OK,
    ) -> int:
        """
        Write the header block in one write.

        Returns:
            Number of bytes written.
        """
        header = self.render(content_type, status)
        out.write(header)
        return len(header)


class ContentWriter:
    """
    Locates the requested file and writes the response body.

    =========================================================================
    SECURITY
    =========================================================================

    The resolved path is built by plain concatenation, so a target such as
    "/../../etc/passwd" points outside the document root. locate() resolves
    the path (following ".." and symlinks) and refuses anything that does
    not end up inside the root.

    =========================================================================
    """

    def __init__(self, config: WorkerConfig, chunk_size: int = 64 * 1024):
        """
        Args:
            config: Immutable worker settings.
            chunk_size: Read size for binary copies.
        """
        self.config = config
        self.chunk_size = chunk_size
        self.root = Path(config.document_root).resolve()

    # =========================================================================
    # LOCATING THE FILE
    # =========================================================================

    def locate(self, path: str) -> Resource:
        """
        Map a resolved request path to a file inside the document root.

        Args:
            path: Path produced by the request reader.

        Returns:
            A Resource with status 200, 403 or 404.
        """
        if not path:
            return Resource(path, None, HTTPStatus.NOT_FOUND)

        try:
            full_path = Path(path).resolve()
            if full_path.is_dir() and self.config.index_file:
                # The index file may itself be a symlink
                full_path = (full_path / self.config.index_file).resolve()
        except (OSError, RuntimeError, ValueError) as e:
            # Symlink loops, embedded NUL bytes and the like
            logger.warning(f"Cannot resolve {path!r}: {e}")
            return Resource(path, None, HTTPStatus.NOT_FOUND)

        # ─────────────────────────────────────────────────────────────────
        # PATH TRAVERSAL CHECK (on the final file, after index lookup)
        # ─────────────────────────────────────────────────────────────────
        try:
            full_path.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {path}")
            return Resource(path, None, HTTPStatus.FORBIDDEN)

        if not full_path.is_file() or not os.access(full_path, os.R_OK):
            return Resource(path, None, HTTPStatus.NOT_FOUND)

        return Resource(path, full_path, HTTPStatus.OK)

    # =========================================================================
    # WRITING THE BODY
    # =========================================================================

    def write(self, out: Writable, resource: Resource, content_type: str) -> int:
        """
        Write the body for a located resource.

        Args:
            out: Destination stream. The header must already be written.
            resource: Result of locate().
            content_type: Classified content type; picks the text or the
                          binary path.

        Returns:
            Number of body bytes written.

        Raises:
            OSError: If the file cannot be read or the stream fails.
        """
        if not resource.found:
            return self.write_error(out, resource.status)

        if is_text_type(content_type):
            return self.write_substituted(out, resource.file)

        return self.write_binary(out, resource.file)

    def write_error(self, out: Writable, status: HTTPStatus) -> int:
        """Write the synthesized HTML page for a 403 or 404."""
        body = ERROR_BODIES.get(status, NOT_FOUND_BODY)
        out.write(body)
        return len(body)

    def write_binary(self, out: Writable, file: Path) -> int:
        """Copy a file to the output byte for byte."""
        with open(file, "rb") as f:
            counter = _CountingWriter(out)
            shutil.copyfileobj(f, counter, self.chunk_size)
            return counter.count

    def write_substituted(self, out: Writable, file: Path) -> int:
        """
        Send a text file with its placeholders replaced.

        The file is read line by line and each line is written as soon as
        it is substituted. Tokens never contain a newline (checked by
        ServerConfig.validate), so no token can be split across lines.

        surrogateescape keeps bytes that are not valid UTF-8 intact: they
        are decoded to lone surrogates and encoded back unchanged.
        """
        date = format_http_date(self.config.clock())
        written = 0

        # newline="" keeps \r\n line endings as they are on disk
        with open(file, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
            for line in f:
                data = self.substitute(line, date).encode("utf-8", errors="surrogateescape")
                out.write(data)
                written += len(data)

        return written

    def substitute(self, text: str, date: Optional[str] = None) -> str:
        """
        Replace the date and server placeholders in text.

        Args:
            text: Text that may contain placeholders.
            date: Formatted date to insert. Defaults to the current time.

        Example:
            >>> writer.substitute("<cs371server> says hi")
            'The Unfinished Server says hi'
        """
        if date is None:
            date = format_http_date(self.config.clock())
        text = text.replace(self.config.date_token, date)
        return text.replace(self.config.server_token, self.config.server_name)


class _CountingWriter:
    """Wraps a writable and counts the bytes passed through it."""

    def __init__(self, out: Writable):
        self.out = out
        self.count = 0

    def write(self, data: bytes) -> int:
        self.out.write(data)
        self.count += len(data)
        return len(data)
