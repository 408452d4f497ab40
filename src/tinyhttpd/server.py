"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────────┐  ┌──────────────┐       │
    │    │ SocketServer │───►│ConnectionHandler │  │ShutdownToken │       │
    │    │ (accept loop)│    │ (one response)   │  │ (stop flag)  │       │
    │    └──────────────┘    └──────────────────┘  └──────────────┘       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

HTTPServer does not install signal handlers itself. Signals can only be
handled in the main thread, and tests run the server in a background
thread. The CLI wraps run() in shutdown_on_signals() instead.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, ShutdownToken
from .handler import ConnectionHandler


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    The single-connection HTTP server.

    Usage:
        server = HTTPServer(ServerConfig(port=8080))
        server.run()                 # Blocks until server.shutdown()

    Attributes:
        config: Server configuration.
        shutdown_token: Token that stops the accept loop.
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        shutdown_token: Optional[ShutdownToken] = None,
    ):
        """
        Initialize the server.

        Args:
            config: Server configuration. Uses defaults if not provided.
            shutdown_token: Shared stop flag; created if not provided.

        Raises:
            ConfigError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self.shutdown_token = shutdown_token or ShutdownToken()
        self._handler = ConnectionHandler()
        self._socket_server = SocketServer(self.config, self.shutdown_token)

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def run(self):
        """
        Start the server.

        Blocks until the shutdown token is set.

        Raises:
            ServerStartupError: If the socket cannot be set up.
            AcceptError: If accept() fails and exit_on_accept_error is set.
        """
        self._setup_logging()

        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self._handler.handle)
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Ask the server to stop after the current iteration."""
        self._socket_server.shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is ready (for tests)."""
        return self._socket_server.wait_until_listening(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("tinyhttpd").setLevel(level)
