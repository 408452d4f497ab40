"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket. A Connection lives for
exactly one request:

    accept() ──► Connection ──► receive_chunk() ──► send_response() ──► close()
                    NEW           READING              WRITING          CLOSED

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

When a client sends

    GET / HTTP/1.1\r\n
    Host: localhost\r\n
    \r\n

the server might see it in one recv() or in several:

    First recv():  "GET / HT"          (partial!)
    Second recv(): "TP/1.1\r\nHost..." (rest)

A full HTTP server buffers until it sees \r\n\r\n. This one does NOT:
it performs ONE recv() of at most buffer_size - 1 bytes and acts on
whatever arrived. If the request line is split across two segments,
the parser sees only the first part. Real clients send the request line
in one segment, so in practice the first chunk holds it.

    buffer_size = 1024
    └── recv(1023)        one byte of the buffer is kept in reserve,
                          matching the C-style "room for a terminator"
                          buffer the protocol was first written against

=============================================================================
FAILURES STAY HERE
=============================================================================

Receive and send errors are caught in this class and turned into return
values:

    receive_chunk() → None   recv() raised (reset, timeout, ...)
    receive_chunk() → b""    client closed without sending anything
    send_response() → False  sendall() raised (client went away)

The accept loop never sees an exception from a client socket.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# Most unread request bytes close() discards before releasing the socket
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Used for log lines and to make close() idempotent.
    """
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Waiting for the request chunk
    PROCESSING = "processing"  # Chunk received, picking a response
    WRITING = "writing"        # Sending response bytes
    CLOSING = "closing"        # In the close sequence
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a single accepted client connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    Connection Responsibilities                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  1. SINGLE-CHUNK READ                                                │
    │     └── One recv() of at most buffer_size - 1 bytes                  │
    │                                                                      │
    │  2. TWO-WRITE SEND                                                   │
    │     └── sendall(header block), then sendall(body)                    │
    │                                                                      │
    │  3. CLOSE EXACTLY ONCE                                               │
    │     └── close() is idempotent; the context manager calls it on       │
    │         every exit path                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used as a log prefix.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Receive buffer capacity (one byte reserved).
        timeout: Socket timeout in seconds; None blocks forever.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 1024
    timeout: Optional[float] = 30.0

    def __post_init__(self):
        """Configure the client socket once the dataclass is built."""
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else ""

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return self.address[1] if self.address else 0

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def receive_chunk(self) -> Optional[bytes]:
        """
        Receive the first chunk of the request.

        Performs a single recv() of at most buffer_size - 1 bytes.

        Returns:
            The received bytes, b"" if the client closed the connection
            without sending anything, or None if recv() failed.
        """
        self.state = ConnectionState.READING

        try:
            data = self.socket.recv(self.buffer_size - 1)
        except OSError as e:
            # Includes socket.timeout and ConnectionResetError
            logger.warning(f"[{self.id}] Receive failed: {e}")
            return None

        self.state = ConnectionState.PROCESSING
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, response: HTTPResponse) -> bool:
        """
        Send a response as two writes: header block, then body.

        sendall() is used for both parts; plain send() may write only
        part of the buffer.

        Args:
            response: The response to transmit.

        Returns:
            True if both writes succeeded, False otherwise.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(response.header_bytes())
            self.socket.sendall(response.body)
            return True
        except OSError as e:
            # BrokenPipeError, ConnectionResetError, timeouts
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client reads EOF
        2. Drain: discard request bytes that already arrived, without
           waiting for more (non-blocking, at most DRAIN_LIMIT bytes).
           Closing with unread data in the kernel buffer sends an RST
           that can destroy the response in flight.
        3. close(): release the file descriptor

        Never blocks: the accept loop is waiting on this connection, so
        a client that keeps its side open or keeps trickling bytes must
        not hold up the next one.

        Safe to call more than once; only the first call does anything.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.setblocking(False)
            drained = 0
            while drained < DRAIN_LIMIT:
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # BlockingIOError: nothing more buffered; or reset

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows:

            with conn:
                data = conn.receive_chunk()
                conn.send_response(response)
            # Connection closed here, whatever happened above
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
