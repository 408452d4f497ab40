"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyhttpd import HTTPServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """A typical browser-style GET / request."""
    return (
        b"GET / HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """POST with a body; the server should refuse it with 405."""
    body = b'{"name": "John"}'
    return (
        b"POST / HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
        + body
    )


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        accept_timeout=0.1,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def socket_pair() -> Generator[Tuple[socket.socket, socket.socket], None, None]:
    """A connected (server_side, client_side) socket pair."""
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for s in (server_side, client_side):
        try:
            s.close()
        except OSError:
            pass


class ServerThread:
    """Runs an HTTPServer in a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self.error: Optional[BaseException] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError(f"Server failed to start: {self.error!r}")

    def _run(self):
        try:
            self.server.run()
        except BaseException as e:  # surfaced to the test through .error
            self.error = e

    def stop(self, timeout: float = 5.0) -> bool:
        """Stop the server. Returns True if the thread finished."""
        self.server.shutdown()
        if self._thread:
            self._thread.join(timeout=timeout)
            return not self._thread.is_alive()
        return True

    def connect(self, timeout: float = 5.0) -> socket.socket:
        """Open a client connection to the server."""
        return socket.create_connection(("127.0.0.1", self.port), timeout=timeout)

    def request(self, data: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes and read everything until the server closes."""
        with self.connect(timeout) as client:
            client.sendall(data)
            return recv_all(client)


def recv_all(sock: socket.socket) -> bytes:
    """Read from ``sock`` until EOF."""
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes) -> Tuple[str, dict, bytes]:
    """Split raw response bytes into (status line, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return lines[0], headers, body


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A started server on an OS-assigned loopback port."""
    srv = ServerThread(HTTPServer(config))
    srv.start()

    yield srv

    srv.stop()
