"""
=============================================================================
HTTP RESPONSE BUILDING
=============================================================================

Every response this server sends has exactly the same shape. Only the
status line and the body change:

    HTTP/1.1 404 Not Found\r\n           ← Status line
    Content-Type: text/plain\r\n         ← What kind of content
    Content-Length: 92\r\n               ← ALWAYS len(body), never typed in
    \r\n                                 ← Empty line = end of headers
    <!DOCTYPE html>...                   ← Body bytes

No Date, Server or Connection headers are added. The connection is
closed after every response, so the client finds the end of the body
either from Content-Length or from EOF.

=============================================================================
HEADER BLOCK + BODY = TWO WRITES
=============================================================================

The response is handed to the socket as two consecutive writes:

    sendall(response.header_bytes())     ← status line + headers + CRLF
    sendall(response.body)               ← payload

HTTPResponse keeps the two parts apart so Connection can do exactly
that. to_bytes() glues them together for tests and for callers that
want a single buffer.

=============================================================================
CANNED PAYLOADS
=============================================================================

There are only two bodies:

    SUCCESS_BODY   sent with 200
    ERROR_BODY     sent with 400, 404 AND 405

The error body says "Not found" whatever the status line says. A 405
carries "Not found" too, and error_response() never varies the body
with the status.

=============================================================================
"""

from dataclasses import dataclass
from typing import Union

from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.1"
CRLF = "\r\n"

CONTENT_TYPE = "text/plain"

SUCCESS_BODY = (
    b"<!DOCTYPE html>\n<html>\n<body>\nHello CS 221\n</body>\n</html>\n\n"
)

ERROR_BODY = (
    b"<!DOCTYPE html>\n<html>\n<body>\nNot found\n</body>\n</html>\n\n"
    b"Connection closed by foreign host.\n"
)


@dataclass(frozen=True)
class HTTPResponse:
    """
    A response ready to be framed and sent.

    Content-Length is not a field: it is always len(body).

    Attributes:
        status_code: Numeric status (200, 404, ...).
        status_text: Reason phrase for the status line.
        content_type: Value of the Content-Type header.
        body: Raw body bytes.
    """

    status_code: int
    status_text: str
    content_type: str = CONTENT_TYPE
    body: bytes = b""

    @property
    def content_length(self) -> int:
        """Byte length of the body."""
        return len(self.body)

    @property
    def status_line(self) -> str:
        """
        The first line of the response, without CRLF.

        Example: "HTTP/1.1 200 OK"
        """
        return f"{HTTP_VERSION} {self.status_code} {self.status_text}"

    def header_bytes(self) -> bytes:
        """
        Serialize the status line and headers, including the blank line
        that ends the header block.
        """
        lines = [
            self.status_line,
            f"Content-Type: {self.content_type}",
            f"Content-Length: {self.content_length}",
            "",
        ]
        return (CRLF.join(lines) + CRLF).encode("latin-1")

    def to_bytes(self) -> bytes:
        """Header block followed by the body, as one buffer."""
        return self.header_bytes() + self.body


def make_response(
    status_code: int,
    status_text: str,
    content_type: str,
    body: Union[str, bytes],
) -> HTTPResponse:
    """
    Create an HTTPResponse, encoding a str body as UTF-8.

    The encoding happens BEFORE the length is taken, so a body with
    multi-byte characters still gets the right Content-Length:

        "héllo"  →  6 bytes, not 5 characters
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    return HTTPResponse(
        status_code=int(status_code),
        status_text=status_text,
        content_type=content_type,
        body=body,
    )


def build_response(
    status_code: int,
    status_text: str,
    content_type: str,
    body: Union[str, bytes],
) -> bytes:
    """
    Frame a complete response as bytes.

    Args:
        status_code: Numeric status code.
        status_text: Reason phrase.
        content_type: Content-Type header value.
        body: Response body; str is encoded as UTF-8.

    Returns:
        Status line, headers, blank line and body.
    """
    return make_response(status_code, status_text, content_type, body).to_bytes()


def success_response() -> HTTPResponse:
    """The 200 response for GET /."""
    return make_response(HTTPStatus.OK, HTTPStatus.OK.phrase, CONTENT_TYPE, SUCCESS_BODY)


def error_response(status: HTTPStatus) -> HTTPResponse:
    """
    An error response for the given status.

    The body is ERROR_BODY for every status; only the status line
    changes.
    """
    return make_response(status, status.phrase, CONTENT_TYPE, ERROR_BODY)
