"""
=============================================================================
WEB WORKER
=============================================================================

Handles exactly one client connection, from the first request byte to
the close.

=============================================================================
PIPELINE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WebWorker.run()                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. RequestReader.read(conn)         → "./index.html"              │
    │   2. ContentWriter.locate(path)       → Resource(file, status)      │
    │   3. ContentClassifier.classify(...)  → "text/html"                 │
    │   4. HeaderWriter.write(conn, ...)    → status line + headers       │
    │   5. ContentWriter.write(conn, ...)   → body                        │
    │   6. conn.close()                     → always, even on errors      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Locating happens before the header so the status line can tell a found
file (200) from a missing one (404) or one outside the document root
(403). Only found files are classified; error pages are always sent as
text/html.

=============================================================================
FAILURES
=============================================================================

    Socket error while reading    reader logs it, the path found so far
                                  is used (usually "" → 404 page)
    Socket error while writing    logged, connection abandoned; the client
                                  sees a truncated or empty response
    Anything else                 logged with traceback, connection closed

Nothing propagates out of run(): one bad connection never affects the
accept loop or other connections.

=============================================================================
"""

import logging
import time
from typing import Optional

from .config import WorkerConfig
from .core.connection import Connection
from .http.mime_types import ContentClassifier
from .http.request import RequestReader
from .http.response import (
    ContentWriter, HeaderWriter, Resource, ERROR_CONTENT_TYPE,
)


logger = logging.getLogger(__name__)


class WebWorker:
    """
    Runs the response pipeline for a single connection.

    The upstream collaborator (WebServer) creates one worker per accepted
    connection and calls run() in a fresh thread.

    Usage:
        worker = WebWorker(conn, config)
        worker.run()          # conn is closed when this returns
        worker.resource       # what was served (None if reading failed)
    """

    def __init__(
        self,
        conn: Connection,
        config: Optional[WorkerConfig] = None,
        classifier: Optional[ContentClassifier] = None,
    ):
        """
        Args:
            conn: Open client connection. Owned by the worker from now on.
            config: Immutable response settings.
            classifier: Shared content classifier. Building one reads the
                        platform MIME files, so the server passes a single
                        instance to every worker.
        """
        self.conn = conn
        self.config = config or WorkerConfig()

        self.reader = RequestReader(
            document_root=self.config.document_root,
            max_line_size=self.config.max_line_size,
            max_request_size=self.config.max_request_size,
            log_prefix=conn.log_prefix,
        )
        self.classifier = classifier or ContentClassifier()
        self.header_writer = HeaderWriter(self.config)
        self.content_writer = ContentWriter(self.config)

        self.resource: Optional[Resource] = None
        self.content_type: str = ""

    def run(self) -> None:
        """
        Handle the connection. Never raises; always closes the connection.
        """
        conn = self.conn
        logger.info(f"[{conn.id}] Handling connection from {conn.client_ip}:{conn.client_port}")
        start = time.time()

        with conn:  # Context manager closes the connection on every path
            try:
                self._respond()
            except OSError as e:
                # Client went away, timed out or reset the connection
                logger.warning(f"[{conn.id}] Output error: {e}")
            except Exception as e:
                logger.exception(f"[{conn.id}] Unexpected error: {e}")

        elapsed_ms = (time.time() - start) * 1000
        status = int(self.resource.status) if self.resource else "-"
        path = self.resource.path if self.resource else "-"
        logger.info(
            f"[{conn.id}] Done handling connection: {path or '-'} {status} "
            f"{conn.bytes_sent}B {elapsed_ms:.1f}ms"
        )

    def _respond(self) -> None:
        conn = self.conn

        # ─────────────────────────────────────────────────────────────────
        # 1. READ THE REQUEST
        # ─────────────────────────────────────────────────────────────────
        path = self.reader.read(conn)

        # ─────────────────────────────────────────────────────────────────
        # 2. LOCATE AND CLASSIFY
        # ─────────────────────────────────────────────────────────────────
        self.resource = resource = self.content_writer.locate(path)

        if resource.found:
            # Directory requests send the index file, so classify that
            self.content_type = self.classifier.classify(resource.file)
        else:
            # The body will be one of the HTML error pages
            self.content_type = ERROR_CONTENT_TYPE

        logger.debug(
            f"[{conn.id}] {path!r} -> {resource.status.value} "
            f"Content-Type: {self.content_type!r}"
        )

        # ─────────────────────────────────────────────────────────────────
        # 3. HEADER, THEN BODY
        # ─────────────────────────────────────────────────────────────────
        self.header_writer.write(conn, self.content_type, resource.status)
        self.content_writer.write(conn, resource, self.content_type)
        conn.flush()
