"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the listener and the per-connection pipeline.

=============================================================================
TWO CONFIGURATION OBJECTS
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION SPLIT                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ServerConfig (mutable dataclass)                                  │
    │      └── Everything the process needs: bind address, timeouts,     │
    │          logging, plus the response settings below                  │
    │                                                                      │
    │   WorkerConfig (frozen dataclass)                                   │
    │      └── Only what a single connection needs to build a response:  │
    │          document root, server name, placeholder tokens, clock      │
    │      └── Derived once with ServerConfig.worker_config() and shared │
    │          by every worker thread (immutable, so no locking)          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Priority (highest to lowest):

    1. Command-line arguments      python -m webworker --port 3000
    2. Environment variables       WEBWORKER_PORT=3000 python -m webworker
    3. Default values (in this dataclass)

=============================================================================
"""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional


DEFAULT_SERVER_NAME = "The Unfinished Server"
DEFAULT_DATE_TOKEN = "<cs371date>"
DEFAULT_SERVER_TOKEN = "<cs371server>"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class WorkerConfig:
    """
    Immutable settings injected into the header and content writers.

    Attributes:
        document_root: Prefix prepended to every GET target. "." serves
                       files relative to the process working directory.
        index_file: File served when the target is a directory (None disables).
        server_name: Value of the Server header and of the server token.
        date_token: Placeholder replaced with the current date in text files.
        server_token: Placeholder replaced with server_name in text files.
        always_ok_status: Send "200 OK" even for missing files.
        clock: Returns the current time (UTC). Replaced in tests.
    """
    document_root: str = "."
    index_file: Optional[str] = "index.html"
    server_name: str = DEFAULT_SERVER_NAME
    date_token: str = DEFAULT_DATE_TOKEN
    server_token: str = DEFAULT_SERVER_TOKEN
    always_ok_status: bool = False
    max_line_size: int = 8192
    max_request_size: int = 64 * 1024
    clock: Callable[[], datetime] = utc_now


@dataclass
class ServerConfig:
    """
    Configuration for the WebWorker server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout

    REQUEST LIMITS
    - max_line_size, max_request_size

    CONTENT
    - document_root, index_file, server_name, date_token, server_token,
      always_ok_status

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    backlog: int = 128
    """
    Maximum number of queued connections.
    """

    timeout: Optional[float] = 30.0
    """
    Read deadline for client sockets in seconds.
    None = block forever (a stalled client then pins its thread).
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_line_size: int = 8192
    """
    Longest request line accepted. Longer lines are discarded.
    """

    max_request_size: int = 64 * 1024
    """
    Maximum bytes read from a request before giving up on it.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "."
    """
    Directory files are served from. Requests cannot escape it.
    """

    index_file: Optional[str] = "index.html"
    """
    File served for directory requests such as "GET /".
    """

    server_name: str = DEFAULT_SERVER_NAME
    """
    Sent in the Server header and substituted for the server token.
    """

    date_token: str = DEFAULT_DATE_TOKEN
    server_token: str = DEFAULT_SERVER_TOKEN

    always_ok_status: bool = False
    """
    Always answer "200 OK", even when the body is the 404 page.
    For clients written against servers that never send error statuses.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR).
    DEBUG also logs every request line.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        WEBWORKER_HOST         Server host (default: 127.0.0.1)
        WEBWORKER_PORT         Server port (default: 8080)
        WEBWORKER_TIMEOUT      Client read timeout in seconds (default: 30)
        WEBWORKER_ROOT         Document root (default: .)
        WEBWORKER_SERVER_NAME  Server name (default: The Unfinished Server)
        WEBWORKER_ALWAYS_OK    "1"/"true" to always answer 200 OK
        WEBWORKER_LOG_LEVEL    Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("WEBWORKER_HOST", "127.0.0.1"),
            port=int(os.getenv("WEBWORKER_PORT", "8080")),
            timeout=float(os.getenv("WEBWORKER_TIMEOUT", "30")),
            document_root=os.getenv("WEBWORKER_ROOT", "."),
            server_name=os.getenv("WEBWORKER_SERVER_NAME", DEFAULT_SERVER_NAME),
            always_ok_status=_env_flag("WEBWORKER_ALWAYS_OK"),
            log_level=os.getenv("WEBWORKER_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at startup so a bad value fails immediately instead of on
        the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_line_size < 64:
            raise ValueError("max_line_size must be >= 64")

        if self.max_request_size < self.max_line_size:
            raise ValueError("max_request_size must be >= max_line_size")

        if not os.path.isdir(self.document_root):
            raise ValueError(f"Document root does not exist: {self.document_root}")

        for name in ("date_token", "server_token"):
            token = getattr(self, name)
            # Substitution works line by line, so a token cannot span lines
            if not token or "\n" in token or "\r" in token:
                raise ValueError(f"{name} must be a non-empty single-line string")

    def worker_config(self) -> WorkerConfig:
        """Derive the immutable per-connection settings."""
        return WorkerConfig(
            document_root=self.document_root,
            index_file=self.index_file,
            server_name=self.server_name,
            date_token=self.date_token,
            server_token=self.server_token,
            always_ok_status=self.always_ok_status,
            max_line_size=self.max_line_size,
            max_request_size=self.max_request_size,
        )
