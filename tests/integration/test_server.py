"""
Integration tests against a real server on a loopback socket.
"""

import socket
import struct
import threading
import time

import pytest

from conftest import ServerThread, recv_all, split_response
from tinyhttpd import HTTPServer, ServerConfig, ServerStartupError
from tinyhttpd.http.response import (
    ERROR_BODY,
    SUCCESS_BODY,
    error_response,
    success_response,
)
from tinyhttpd.http.status_codes import HTTPStatus


class TestResponses:
    """Status selection over the wire."""

    def test_get_root(self, running_server: ServerThread, sample_get_request: bytes):
        raw = running_server.request(sample_get_request)
        status_line, headers, body = split_response(raw)

        assert status_line == "HTTP/1.1 200 OK"
        assert body == SUCCESS_BODY
        assert int(headers["Content-Length"]) == len(SUCCESS_BODY)
        assert raw == success_response().to_bytes()

    def test_other_method(self, running_server: ServerThread, sample_post_request: bytes):
        raw = running_server.request(sample_post_request)

        assert raw == error_response(HTTPStatus.METHOD_NOT_ALLOWED).to_bytes()

    def test_other_target(self, running_server: ServerThread):
        raw = running_server.request(b"GET /foo HTTP/1.1\r\nHost: x\r\n\r\n")

        assert raw.startswith(b"HTTP/1.1 404 Not Found\r\n")

    @pytest.mark.parametrize("request_bytes", [b"\r\n", b"GET\r\n"])
    def test_malformed(self, running_server: ServerThread, request_bytes: bytes):
        raw = running_server.request(request_bytes)

        assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    @pytest.mark.parametrize("request_bytes, status", [
        (b"GET / HTTP/1.1\r\n\r\n", 200),
        (b"\r\n", 400),
        (b"GET /nope HTTP/1.1\r\n\r\n", 404),
        (b"PUT / HTTP/1.1\r\n\r\n", 405),
    ])
    def test_content_length_matches_body(
        self, running_server: ServerThread, request_bytes: bytes, status: int
    ):
        status_line, headers, body = split_response(running_server.request(request_bytes))

        assert status_line.split(" ")[1] == str(status)
        assert headers["Content-Type"] == "text/plain"
        assert int(headers["Content-Length"]) == len(body)
        if status != 200:
            assert body == ERROR_BODY

    def test_repeated_requests_identical(self, running_server: ServerThread, sample_get_request: bytes):
        responses = [running_server.request(sample_get_request) for _ in range(5)]

        assert all(r == responses[0] for r in responses)


class TestConnectionLifecycle:
    """One response per connection, then close."""

    def test_closed_after_response(self, running_server: ServerThread, sample_get_request: bytes):
        with running_server.connect() as client:
            client.sendall(sample_get_request)
            first = recv_all(client)

            assert first.startswith(b"HTTP/1.1 200 OK")
            # EOF again: no second response on this connection
            assert client.recv(1024) == b""

    def test_second_request_on_same_connection_ignored(
        self, running_server: ServerThread, sample_get_request: bytes
    ):
        with running_server.connect() as client:
            # Pipelined: both requests arrive in the one chunk the server reads
            client.sendall(sample_get_request + sample_get_request)
            raw = recv_all(client)

        assert raw.count(b"HTTP/1.1 ") == 1

    def test_idle_client_does_not_delay_next(
        self, running_server: ServerThread, sample_get_request: bytes
    ):
        """A client that keeps its socket open after the response costs nothing."""
        with running_server.connect() as idle:
            idle.sendall(sample_get_request)
            assert recv_all(idle).startswith(b"HTTP/1.1 200 OK")

            started = time.monotonic()
            raw = running_server.request(sample_get_request)
            elapsed = time.monotonic() - started

        assert raw.startswith(b"HTTP/1.1 200 OK")
        assert elapsed < 0.3

    def test_trickling_client_does_not_delay_next(
        self, running_server: ServerThread, sample_get_request: bytes
    ):
        """Bytes that keep arriving after the request do not hold the loop."""
        trickler = running_server.connect()
        stop = threading.Event()

        def trickle():
            while not stop.wait(0.2):
                try:
                    trickler.sendall(b"x")
                except OSError:
                    return  # Server closed its end

        trickler.sendall(sample_get_request)
        thread = threading.Thread(target=trickle, daemon=True)
        thread.start()
        try:
            started = time.monotonic()
            raw = running_server.request(sample_get_request)
            elapsed = time.monotonic() - started
        finally:
            stop.set()
            thread.join(timeout=2.0)
            trickler.close()

        assert raw.startswith(b"HTTP/1.1 200 OK")
        assert elapsed < 1.0

    def test_empty_connection_does_not_stop_server(
        self, running_server: ServerThread, sample_get_request: bytes
    ):
        with running_server.connect() as client:
            client.shutdown(socket.SHUT_WR)
            assert recv_all(client) == b""

        assert running_server.request(sample_get_request).startswith(b"HTTP/1.1 200 OK")

    def test_reset_client_does_not_stop_server(
        self, running_server: ServerThread, sample_get_request: bytes
    ):
        client = running_server.connect()
        # SO_LINGER with zero timeout: close() sends RST
        client.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
        client.close()

        assert running_server.request(sample_get_request).startswith(b"HTTP/1.1 200 OK")

    def test_connections_served_in_order(
        self, running_server: ServerThread, sample_get_request: bytes
    ):
        """While one client is being handled, the next one waits."""
        first = running_server.connect()
        time.sleep(0.1)  # Let the server accept and block on `first`
        second = running_server.connect()
        second.sendall(sample_get_request)

        second.settimeout(0.3)
        with pytest.raises(socket.timeout):
            second.recv(1024)

        first.sendall(sample_get_request)
        assert recv_all(first).startswith(b"HTTP/1.1 200 OK")
        first.close()

        second.settimeout(5.0)
        assert recv_all(second).startswith(b"HTTP/1.1 200 OK")
        second.close()


class TestServerLifecycle:
    """Bind, shutdown and startup failures."""

    def test_port_is_taken_while_running(self, running_server: ServerThread):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as other:
            with pytest.raises(OSError):
                other.bind(("127.0.0.1", running_server.port))

    def test_shutdown_stops_loop(self, config: ServerConfig):
        srv = ServerThread(HTTPServer(config))
        srv.start()
        port = srv.port

        assert srv.server.is_running
        assert srv.stop(timeout=5.0) is True
        assert srv.error is None
        assert not srv.server.is_running

        with pytest.raises(OSError):
            socket.create_connection(("127.0.0.1", port), timeout=1.0)

    def test_address_reports_assigned_port(self, running_server: ServerThread):
        host, port = running_server.server.address

        assert host == "127.0.0.1"
        assert port != 0

    def test_bind_failure_is_startup_error(self, config: ServerConfig):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
            holder.bind(("127.0.0.1", 0))
            holder.listen(1)
            config.port = holder.getsockname()[1]

            with pytest.raises(ServerStartupError):
                HTTPServer(config).run()
