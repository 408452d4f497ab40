"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server knows about has a home in this hierarchy:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TinyHTTPError                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ConfigError          Port file missing/garbled, bad settings      │
    │                        └── FATAL at startup (exit 1)                │
    │                                                                      │
    │   ServerError                                                        │
    │   ├── ServerStartupError   socket()/bind()/listen() failed          │
    │   │                        └── FATAL at startup (exit 1)            │
    │   └── AcceptError          accept() failed                          │
    │                            └── logged and skipped, unless the       │
    │                                server runs with exit_on_accept_error│
    │                                                                      │
    │   RequestParseError    Request line has fewer than two tokens       │
    │                        └── 400 Bad Request to THAT client only      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Receive and send failures on an accepted connection are NOT exceptions
at this level: the Connection wrapper catches the OSError and reports it
as a return value, so one misbehaving client can never reach the accept
loop.

=============================================================================
"""

from typing import Optional


class TinyHTTPError(Exception):
    """Base class for all tinyhttpd errors."""


class ConfigError(TinyHTTPError):
    """
    Raised when configuration cannot be loaded or is invalid.
    
    Attributes:
        path: The file the bad value came from, if any.
    """
    
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ServerError(TinyHTTPError):
    """Raised for failures of the listening socket."""


class ServerStartupError(ServerError):
    """Creating, binding or listening on the server socket failed."""


class AcceptError(ServerError):
    """Accepting a client connection failed."""


class RequestParseError(TinyHTTPError):
    """
    Raised when the request line cannot be parsed.
    
    Carries the HTTP status code to send back, same as the status the
    connection handler would pick for it.
    """
    
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code
