"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Listens for connections and hands each accepted client socket, wrapped
in a Connection, to a callback. It knows nothing about HTTP.

SOCKET LIFECYCLE (Server Side):
────────────────────────────────

    1. socket()    Create the listening socket
    2. bind()      Reserve host:port
    3. listen()    Start queueing incoming connections (backlog)
    4. accept()    Returns a NEW socket for each client
    5. close()     Release the listening socket on shutdown

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘
                                │ accept()
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Client 1  │         │ Client 2  │         │ Client 3  │
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
SHUTDOWN
=============================================================================

accept() has a 1 second timeout so the loop notices shutdown() within a
second. SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) call shutdown()
when the server runs in the main thread; signal handlers can only be
installed there, so a server started from another thread (tests) skips
them.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening, cleared again on shutdown
        self._ready_event = threading.Event()

        # Original signal handlers, restored on cleanup
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound address (IP, port).

        With port 0 in the config this is the port the OS picked, once
        the server is listening.
        """
        if self._socket is not None:
            try:
                host, port = self._socket.getsockname()[:2]
                return (host, port)
            except OSError:
                pass
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create and configure the listening socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # SO_REUSEADDR: restart without "Address already in use" while old
        # connections sit in TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Bounded accept() so the loop can check _running
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers for graceful shutdown."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and accept connections until shutdown() is called.

        Args:
            connection_handler: Called with every new Connection. It must
                                return quickly (the WebServer starts a
                                thread and returns).

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """Accept connections until _running becomes False."""
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Normal: lets us re-check self._running once a second
                continue
            except OSError as e:
                # Usually the socket was closed during shutdown
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            # Accepted sockets inherit the listening socket's timeout on
            # some platforms; Connection sets its own read deadline
            try:
                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    timeout=self.config.timeout,
                )
            except OSError as e:
                logger.error(f"Failed to set up connection from {client_address[0]}: {e}")
                client_socket.close()
                continue

            try:
                connection_handler(conn)
            except Exception as e:
                # A failing handler must not stop the accept loop
                logger.exception(f"[{conn.id}] Failed to dispatch connection: {e}")
                conn.close()

    def shutdown(self):
        """
        Initiate graceful shutdown.

        Safe to call from a signal handler, another thread, or more than
        once.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        """Clean up resources on shutdown."""
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the socket is listening.

        Returns:
            True if listening, False on timeout.
        """
        return self._ready_event.wait(timeout)
