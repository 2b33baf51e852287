"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the response pipeline:

    SocketServer   accepts TCP connections
    Connection     wraps one client socket (readline / write / close)

=============================================================================
THREAD-PER-CONNECTION MODEL
=============================================================================

Every accepted connection gets its own thread (see server.WebServer).
Connections share no mutable state, so no locking is needed, and a slow
client only ever stalls its own thread (until its read timeout fires).

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Accepts connections
    "Connection",       # Wrapper for a client socket
    "ConnectionState",  # Enum for connection lifecycle states
]
