"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything that knows what HTTP looks like on the wire:

    request.py        bytes → RequestLine(method, target)
    response.py       HTTPResponse → bytes (header block + body)
    status_codes.py   HTTPStatus enum with reason phrases

Nothing in here touches a socket. That is the job of tinyhttpd.core.

=============================================================================
"""

from .request import RequestLine, parse_request_line
from .response import (
    HTTPResponse,
    CONTENT_TYPE,
    SUCCESS_BODY,
    ERROR_BODY,
    make_response,
    build_response,
    success_response,
    error_response,
)
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "RequestLine",
    "parse_request_line",
    
    # Response building
    "HTTPResponse",
    "CONTENT_TYPE",
    "SUCCESS_BODY",
    "ERROR_BODY",
    "make_response",
    "build_response",
    "success_response",
    "error_response",
    
    # Status codes
    "HTTPStatus",
]
