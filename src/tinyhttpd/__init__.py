"""
=============================================================================
TINYHTTPD - A Single-Connection HTTP/1.1 Responder
=============================================================================

A small HTTP server on raw Python sockets. It accepts one
connection at a time, looks at the request line, sends one canned
response and closes the connection.

=============================================================================
WHAT IT ANSWERS
=============================================================================

    $ curl -i http://localhost:8080/
    HTTP/1.1 200 OK
    Content-Type: text/plain
    Content-Length: 60

    <!DOCTYPE html>
    <html>
    <body>
    Hello CS 221
    </body>
    </html>

    GET /          → 200 OK
    GET /anything  → 404 Not Found
    POST /         → 405 Method Not Allowed
    garbage        → 400 Bad Request

Every error status carries the same "Not found" page.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    tinyhttpd/
    ├── __init__.py         # This file
    ├── __main__.py         # CLI: python -m tinyhttpd
    ├── config.py           # ServerConfig, port file reader
    ├── errors.py           # Exception hierarchy
    ├── handler.py          # ConnectionHandler: request → response
    ├── server.py           # HTTPServer: wires everything together
    ├── core/
    │   ├── connection.py   # Client socket wrapper
    │   ├── socket_server.py# Listening socket + accept loop
    │   └── shutdown.py     # ShutdownToken, signal adapter
    └── http/
        ├── request.py      # Request line parser
        ├── response.py     # Response framing, canned bodies
        └── status_codes.py # HTTPStatus enum

=============================================================================
QUICK START
=============================================================================

    from tinyhttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(host="127.0.0.1", port=8080))
    server.run()    # Blocks until server.shutdown() is called

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig, read_port_file
from .core import ShutdownToken, shutdown_on_signals
from .handler import ConnectionHandler, HandlerOutcome
from .errors import (
    TinyHTTPError,
    ConfigError,
    ServerError,
    ServerStartupError,
    AcceptError,
    RequestParseError,
)

__all__ = [
    "__version__",
    "HTTPServer",
    "ServerConfig",
    "read_port_file",
    "ShutdownToken",
    "shutdown_on_signals",
    "ConnectionHandler",
    "HandlerOutcome",
    "TinyHTTPError",
    "ConfigError",
    "ServerError",
    "ServerStartupError",
    "AcceptError",
    "RequestParseError",
]
