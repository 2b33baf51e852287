"""
=============================================================================
WEB SERVER
=============================================================================

Ties the listener to the per-connection pipeline.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    REQUEST LIFECYCLE                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer            accept() → Connection                     │
    │        │                                                             │
    │        ▼                                                             │
    │   WebServer._handle_connection                                      │
    │        │   starts a daemon thread, returns immediately              │
    │        ▼                                                             │
    │   WebWorker.run()         read → locate → classify → header → body │
    │        │                                                             │
    │        ▼                                                             │
    │   Connection.close()      always                                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

One thread per connection, no pool: the worker threads share nothing but
the immutable WorkerConfig and the read-only ContentClassifier.

=============================================================================
"""

import logging
import threading
from typing import Optional

from .config import ServerConfig
from .core import SocketServer, Connection
from .http.mime_types import ContentClassifier
from .worker import WebWorker


logger = logging.getLogger(__name__)


class WebServer:
    """
    Single-request-per-connection HTTP file server.

    Usage:
        server = WebServer(ServerConfig(port=8080, document_root="./public"))
        server.run()  # Blocks until Ctrl+C

    From another thread (tests):
        thread = threading.Thread(target=server.run, daemon=True)
        thread.start()
        server.wait_until_ready(5)
        host, port = server.address
        ...
        server.shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast on invalid config

        self.worker_config = self.config.worker_config()
        self.classifier = ContentClassifier()

        self._socket_server = SocketServer(self.config)
        self._running = False

    @property
    def address(self):
        """The bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, configure_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            configure_logging: Set up the root logger from config.log_level.
                               Embedding applications pass False.
        """
        if configure_logging:
            self._setup_logging()

        self._running = True
        logger.info(
            f"Starting {self.config.server_name} on {self.config.host}:{self.config.port}, "
            f"serving {self.config.document_root}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. Connections in progress finish."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("webworker").setLevel(level)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Start a worker thread for a new connection.

        Called by SocketServer on the accept thread, so it must not block.
        """
        worker = WebWorker(conn, self.worker_config, classifier=self.classifier)
        thread = threading.Thread(
            target=worker.run,
            name=f"WebWorker-{conn.id}",
            daemon=True,
        )
        thread.start()
