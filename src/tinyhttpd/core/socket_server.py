"""
=============================================================================
SOCKET SERVER - THE ACCEPT LOOP
=============================================================================

This module owns the listening socket and the loop that accepts clients.

=============================================================================
THE LIFECYCLE OF A TCP SERVER
=============================================================================

    1. socket()  Create a TCP socket
    2. bind()    Associate it with IP:PORT
    3. listen()  Start queueing incoming connections (backlog = 3)
    4. accept()  Take the next connection off the queue
    5. handle    Receive, respond, close
    6. goto 4    Until asked to stop

Steps 1-3 happen once. If any of them fails (port in use, permission
denied, bad address) there is nothing sensible to retry: the server
raises ServerStartupError and the process exits.

=============================================================================
ONE CONNECTION AT A TIME
=============================================================================

    ┌──────────────────────────────────────────────────────────────────────┐
    │   accept() ──► handle(conn) ──► accept() ──► handle(conn) ──► ...    │
    │                    │                             │                   │
    │                    └── runs to completion ───────┘                   │
    │                        (response sent, socket closed)                │
    └──────────────────────────────────────────────────────────────────────┘

No threads, no selectors. While one client is being handled, the next
one waits in the kernel's accept queue. With a backlog of 3, a fourth
waiting client may be refused by the OS. Clients are served strictly
in the order they were accepted.

=============================================================================
STOPPING
=============================================================================

accept() is given a timeout (accept_timeout, 1 second by default). Each
timeout is just another loop iteration, and every iteration begins by
checking the ShutdownToken:

    while not shutdown.is_set():
        try:
            accept()          # Blocks for 1 second max
        except timeout:
            continue          # Check the token, loop again

So a stop request takes effect at the next iteration boundary. It never
interrupts a connection that is being handled.

=============================================================================
ACCEPT ERRORS
=============================================================================

A failed accept() (e.g. the process ran out of file descriptors, or the
client reset the connection while still queued) is logged and the loop
continues. With exit_on_accept_error=True the loop instead stops with
AcceptError, the way a strict C server would exit.

=============================================================================
"""

import socket
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from ..errors import ServerStartupError, AcceptError
from .connection import Connection
from .shutdown import ShutdownToken


logger = logging.getLogger(__name__)


# Pause after a failed accept() so a persistent error (EMFILE) can't spin
ACCEPT_ERROR_PAUSE = 0.1


class SocketServer:
    """
    Low-level TCP socket server.

    Manages the listening socket and serial connection acceptance.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(handler)                                                    │
    │        │                                                             │
    │        ├──► _create_socket()   socket() + SO_REUSEADDR               │
    │        ├──► bind()             Bind to host:port                     │
    │        ├──► listen()           backlog from config                   │
    │        │                                                             │
    │        └──► _accept_loop()     Main loop (blocks here!)              │
    │                 │                                                    │
    │                 └──► while not shutdown:                             │
    │                         accept()      Wait for connection            │
    │                         Connection()  Wrap client socket             │
    │                         handler(conn) Handle it, synchronously       │
    │                                                                      │
    │    shutdown()          Set the token; loop exits next iteration      │
    │                                                                      │
    │    _cleanup()          Close the listening socket                    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig, shutdown_token: Optional[ShutdownToken] = None):
        """
        Initialize the socket server.

        Args:
            config: Server configuration (host, port, backlog, ...).
            shutdown_token: Token that stops the accept loop once set.
                            A fresh one is created if not given.

        The socket is NOT created here; start() does that.
        """
        self.config = config
        self.shutdown_token = shutdown_token or ShutdownToken()

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._bound_address: Optional[Tuple[str, int]] = None

        # Set once listen() succeeded; tests wait on it
        self._listening = threading.Event()

    @property
    def is_running(self) -> bool:
        """Check if the accept loop is running."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The address the server is bound to.

        After bind this is the real address, so a configured port of 0
        shows the port the OS picked.
        """
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """
        Create and configure the server socket.

        Returns:
            Socket ready for binding.

        Raises:
            ServerStartupError: If the socket cannot be created.
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            logger.error(f"Failed to create socket: {e}")
            raise ServerStartupError(f"socket: {e}") from e

        # SO_REUSEADDR: rebind right after a restart even while old
        # connections sit in TIME_WAIT. A port with a live listener
        # still refuses a second bind.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        return sock

    def _bind_and_listen(self, sock: socket.socket):
        """
        Bind ``sock`` to the configured address and start listening.

        Raises:
            ServerStartupError: If bind() or listen() fails. The socket
                                is closed before raising.
        """
        host, port = self.config.host, self.config.port

        try:
            sock.bind((host, port))
        except OSError as e:
            # Address already in use, permission denied (< 1024), ...
            logger.error(f"Failed to bind to {host}:{port}: {e}")
            sock.close()
            raise ServerStartupError(f"bind {host}:{port}: {e}") from e

        try:
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to listen on {host}:{port}: {e}")
            sock.close()
            raise ServerStartupError(f"listen {host}:{port}: {e}") from e

        self._bound_address = sock.getsockname()[:2]

    def start(self, connection_handler: Callable[[Connection], object]):
        """
        Bind, listen and run the accept loop.

        This method BLOCKS until the shutdown token is set (or, with
        exit_on_accept_error, until accept() fails).

        Args:
            connection_handler: Called with each accepted Connection.
                                Must finish with the connection before
                                returning; the next accept waits for it.

        Raises:
            ServerStartupError: socket()/bind()/listen() failed.
            AcceptError: accept() failed and exit_on_accept_error is set.
        """
        sock = self._create_socket()
        self._bind_and_listen(sock)

        sock.settimeout(self.config.accept_timeout)
        self._socket = sock
        self._running = True
        self._listening.set()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port} (backlog={self.config.backlog})")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], object]):
        """
        Accept connections one by one until shutdown is requested.

        Args:
            connection_handler: Callback for each new connection.
        """
        while not self.shutdown_token.is_set():
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                # Normal: gives us a chance to check the shutdown token
                continue
            except OSError as e:
                if self.shutdown_token.is_set():
                    break
                if self.config.exit_on_accept_error:
                    logger.error(f"Accept error: {e}")
                    raise AcceptError(f"accept: {e}") from e
                logger.error(f"Accept error, continuing: {e}")
                self.shutdown_token.wait(ACCEPT_ERROR_PAUSE)
                continue

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )

            logger.debug(f"[{conn.id}] Accepted connection from {conn.client_ip}:{conn.client_port}")

            try:
                connection_handler(conn)
            except Exception as e:
                # A broken handler must not take the accept loop down
                logger.exception(f"[{conn.id}] Handler error: {e}")
            finally:
                conn.close()

    def shutdown(self):
        """
        Request shutdown.

        The loop exits at the start of its next iteration, after the
        current accept() times out or the current connection is done.
        Safe to call more than once and from any thread.
        """
        logger.info("Shutting down socket server...")
        self.shutdown_token.set()

    def _cleanup(self):
        """Close the listening socket."""
        self._running = False

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        logger.info("Socket server stopped")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the socket is bound and listening.

        Useful for tests that run the server in a background thread.

        Returns:
            True once listening, False on timeout.
        """
        return self._listening.wait(timeout)
