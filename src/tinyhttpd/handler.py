"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Turns one accepted connection into exactly one response.

=============================================================================
THE DECISION RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    What does the client get?                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   recv() → b""                    nothing (client left)             │
    │   recv() raised                   nothing (logged)                  │
    │                                                                      │
    │   fewer than 2 tokens             400 Bad Request                   │
    │   method != "GET"                 405 Method Not Allowed            │
    │   target != "/"                   404 Not Found                     │
    │   otherwise                       200 OK + success page             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The rules are checked in that order, so "POST /foo" is a 405, not a 404.
Comparisons are exact and case-sensitive: "get /" is a 405 and "GET /?"
is a 404.

After the response (or the lack of one) the connection is closed, on
every path, including a failed send.

=============================================================================
OUTCOMES
=============================================================================

handle() never raises for client misbehavior. It reports what happened:

    RESPONDED        a response was fully written
    NO_REQUEST       the client closed without sending a byte
    RECEIVE_FAILED   recv() failed; no response was attempted
    SEND_FAILED      the response could not be written

The accept loop ignores the outcome; tests and logs use it.

=============================================================================
"""

import logging
from enum import Enum

from .core.connection import Connection
from .errors import RequestParseError
from .http.request import parse_request_line
from .http.response import HTTPResponse, success_response, error_response
from .http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


ALLOWED_METHOD = "GET"
ROOT_TARGET = "/"


class HandlerOutcome(Enum):
    """What happened to a connection."""
    RESPONDED = "responded"
    NO_REQUEST = "no_request"
    RECEIVE_FAILED = "receive_failed"
    SEND_FAILED = "send_failed"


def choose_response(raw: bytes) -> HTTPResponse:
    """
    Pick the response for the received request bytes.

    Args:
        raw: First chunk received from the client.

    Returns:
        The response to send.
    """
    try:
        request = parse_request_line(raw)
    except RequestParseError as e:
        logger.debug(f"Rejecting request: {e}")
        return error_response(HTTPStatus(e.status_code))

    if request.method != ALLOWED_METHOD:
        return error_response(HTTPStatus.METHOD_NOT_ALLOWED)

    if request.target != ROOT_TARGET:
        return error_response(HTTPStatus.NOT_FOUND)

    return success_response()


class ConnectionHandler:
    """
    Handles one connection: receive, parse, decide, respond, close.

    Stateless; a single instance serves every connection.

    Usage:
        handler = ConnectionHandler()
        socket_server.start(handler.handle)
    """

    def handle(self, conn: Connection) -> HandlerOutcome:
        """
        Serve a single connection and close it.

        Args:
            conn: A freshly accepted connection. It is closed when this
                  method returns.

        Returns:
            What happened, as a HandlerOutcome.
        """
        with conn:
            raw = conn.receive_chunk()

            if raw is None:
                return HandlerOutcome.RECEIVE_FAILED

            if not raw:
                logger.debug(f"[{conn.id}] Client closed without sending a request")
                return HandlerOutcome.NO_REQUEST

            response = choose_response(raw)
            request_line = _first_line(raw)

            if not conn.send_response(response):
                logger.warning(
                    f"[{conn.id}] {conn.client_ip} \"{request_line}\" "
                    f"{response.status_code}: response not delivered"
                )
                return HandlerOutcome.SEND_FAILED

            logger.info(
                f"[{conn.id}] {conn.client_ip} \"{request_line}\" "
                f"{response.status_code} {response.content_length}"
            )
            return HandlerOutcome.RESPONDED

    __call__ = handle


def _first_line(raw: bytes, limit: int = 80) -> str:
    """First line of the request, printable and shortened, for log lines."""
    line = raw.split(b"\n", 1)[0].rstrip(b"\r")
    text = line.decode("latin-1").encode("unicode_escape").decode("ascii")
    if len(text) > limit:
        text = text[:limit] + "..."
    return text
