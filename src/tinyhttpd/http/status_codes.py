"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server only ever answers with four statuses:

    ┌──────┬─────────────────────┬──────────────────────────────────────┐
    │ Code │ Reason phrase       │ When                                 │
    ├──────┼─────────────────────┼──────────────────────────────────────┤
    │ 200  │ OK                  │ GET /                                │
    │ 400  │ Bad Request         │ request line has < 2 tokens          │
    │ 404  │ Not Found           │ GET with any target other than /     │
    │ 405  │ Method Not Allowed  │ any method other than GET            │
    └──────┴─────────────────────┴──────────────────────────────────────┘

The reason phrase is the text after the code in the status line:

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      │
              │      └── Reason phrase
              └───────── Status code

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes emitted by the server.
    
    IntEnum, so members compare equal to plain integers:
    
        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """
    
    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    
    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")
    
    @property
    def is_success(self) -> bool:
        """True for 2xx codes."""
        return 200 <= self < 300
    
    @property
    def is_client_error(self) -> bool:
        """True for 4xx codes."""
        return 400 <= self < 500


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
}
