"""
=============================================================================
WEBWORKER - Minimal Static File Web Server
=============================================================================

Serves files from a document root over raw TCP sockets, one request per
connection, one thread per connection.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WEBWORKER ARCHITECTURE                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer ──► WebServer ──► thread ──► WebWorker               │
    │                                                │                     │
    │                                                ▼                     │
    │        RequestReader     first "GET <target>" line → path           │
    │        ContentWriter     path → file, or 404 / 403                  │
    │        ContentClassifier file → Content-Type                        │
    │        HeaderWriter      status line + Date/Server/Connection/Type  │
    │        ContentWriter     body: text with placeholders substituted,  │
    │                          binary files byte for byte                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Text files may contain two placeholder tokens that are replaced on the
way out:

    <cs371date>     the current date and time (GMT)
    <cs371server>   the server name ("The Unfinished Server")

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    webworker/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m webworker)
    ├── server.py            # WebServer: listener + thread per connection
    ├── worker.py            # WebWorker: the per-connection pipeline
    ├── config.py            # ServerConfig / WorkerConfig dataclasses
    ├── core/
    │   ├── socket_server.py # TCP accept loop
    │   └── connection.py    # Client socket wrapper
    └── http/
        ├── request.py       # RequestReader
        ├── response.py      # HeaderWriter, ContentWriter
        ├── mime_types.py    # ContentClassifier
        └── status_codes.py  # HTTPStatus

=============================================================================
QUICK START
=============================================================================

    from webworker import WebServer, ServerConfig

    server = WebServer(ServerConfig(port=8080, document_root="./public"))
    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig, WorkerConfig
from .server import WebServer
from .worker import WebWorker

__all__ = ["WebServer", "WebWorker", "ServerConfig", "WorkerConfig", "__version__"]
