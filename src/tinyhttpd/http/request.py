"""
=============================================================================
REQUEST LINE PARSING
=============================================================================

The server only looks at the first two words of what the client sent:

    GET / HTTP/1.1\r\n
    ─┬─ ┬ ────┬───
     │  │     │
     │  │     └── Ignored (so is everything after it: headers, body)
     │  └──────── Target
     └─────────── Method

=============================================================================
TOKENIZING
=============================================================================

The received chunk is split on ASCII whitespace (space, \t, \r, \n,
\v, \f) and the first two tokens are taken. Runs of whitespace count as
one separator and leading whitespace is skipped, so all of these parse
to ("GET", "/"):

    b"GET / HTTP/1.1\r\n\r\n"
    b"GET /"
    b"  GET\t/  "

Fewer than two tokens is a malformed request:

    b"\r\n"        → RequestParseError (400)
    b"GET\r\n"     → RequestParseError (400)
    b""            → RequestParseError (400)

A NUL byte ends the text: anything from the first b"\x00" on is
dropped before splitting, as a C string reader would see it.

    b"GET\x00 / HTTP/1.1"  → RequestParseError (400)
    b"GET /\x00junk"       → ("GET", "/")

There is no separate length check on the tokens. They can never be
longer than the receive buffer, which already bounds them.

Tokens are decoded as ISO-8859-1 (latin-1). Every byte maps to exactly
one character, so decoding never fails and a non-ASCII method simply
won't equal "GET".

=============================================================================
"""

from dataclasses import dataclass

from ..errors import RequestParseError
from .status_codes import HTTPStatus


@dataclass(frozen=True)
class RequestLine:
    """
    The parsed part of a request.

    Attributes:
        method: First token, e.g. "GET".
        target: Second token, e.g. "/".
    """

    method: str
    target: str


def parse_request_line(raw: bytes) -> RequestLine:
    """
    Extract method and target from raw request bytes.

    Args:
        raw: Bytes received from the client (first chunk only).

    Returns:
        RequestLine with method and target.

    Raises:
        RequestParseError: If fewer than two tokens are present.
    """
    raw = raw.split(b"\x00", 1)[0]
    # bytes.split() with no argument splits on ASCII whitespace only
    tokens = raw.split(maxsplit=2)
    if len(tokens) < 2:
        raise RequestParseError(
            "Malformed request line",
            status_code=HTTPStatus.BAD_REQUEST,
        )

    method, target = tokens[0], tokens[1]
    return RequestLine(
        method=method.decode("latin-1"),
        target=target.decode("latin-1"),
    )
