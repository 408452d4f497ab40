"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m tinyhttpd --port 3000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── TINYHTTPD_PORT=3000 python -m tinyhttpd                   │
    │                                                                      │
    │   3. The port file                                                  │
    │      └── port.txt containing "8080"                                │
    │                                                                      │
    │   4. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
THE PORT FILE
=============================================================================

The port normally comes from a small text file, port.txt by default,
whose first word is the port number:

    $ cat port.txt
    8080

Parsing is scanf("%d")-like: leading whitespace is skipped, an optional
sign and digits are read, anything after the number is ignored.

    "8080\n"          → 8080
    "  9000 # dev"    → 9000
    ""                → ConfigError
    "eighty"          → ConfigError
    "70000"           → ConfigError (out of range)

Not being able to get a port is fatal: the server cannot start without
one.

=============================================================================
"""

import os
import re
from dataclasses import dataclass
from typing import Optional

from .errors import ConfigError


DEFAULT_PORT_FILE = "port.txt"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_port(text: str, source: Optional[str] = None) -> int:
    """
    Parse the leading integer of ``text`` as a TCP port.

    Args:
        text: Text whose first word is the port number.
        source: Where the text came from, for error messages.

    Returns:
        Port number in the range 0-65535.

    Raises:
        ConfigError: If there is no leading integer or it is out of range.
    """
    where = f" in {source}" if source else ""

    match = _LEADING_INT.match(text)
    if not match:
        raise ConfigError(f"No port number found{where}", path=source)

    port = int(match.group(1))
    if not 0 <= port <= 65535:
        raise ConfigError(f"Invalid port{where}: {port}. Must be 0-65535.", path=source)

    return port


def read_port_file(path: str = DEFAULT_PORT_FILE) -> int:
    """
    Read the port number from a file.

    Args:
        path: Path of the port file.

    Returns:
        The port number.

    Raises:
        ConfigError: If the file cannot be read or holds no valid port.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"Error opening port file {path}: {e.strerror or e}", path=path) from e

    return parse_port(text, source=path)


@dataclass
class ServerConfig:
    """
    Configuration for the server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, port_file, backlog, buffer_size, timeout, accept_timeout

    ERROR POLICY
    - exit_on_accept_error

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All local interfaces
    - "127.0.0.1" - Localhost only (tests)
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port.
    """

    port_file: str = DEFAULT_PORT_FILE
    """
    File the port is read from when nothing else supplies one.
    """

    backlog: int = 3
    """
    Maximum number of connections waiting to be accepted.
    The server handles one connection at a time, so the queue stays short.
    """

    buffer_size: int = 1024
    """
    Receive buffer capacity in bytes. One byte is reserved, so a single
    receive reads at most buffer_size - 1 bytes.
    """

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout in seconds.
    None = block forever on a silent client.
    """

    accept_timeout: Optional[float] = 1.0
    """
    How long one accept() may block before the loop re-checks the
    shutdown token. None = block until a client arrives.
    """

    # ─────────────────────────────────────────────────────────────────────
    # ERROR POLICY
    # ─────────────────────────────────────────────────────────────────────

    exit_on_accept_error: bool = False
    """
    If True, a failed accept() stops the server with AcceptError.
    If False, the failure is logged and the loop keeps accepting.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR).
    """

    @classmethod
    def from_port_file(cls, path: Optional[str] = None, **overrides) -> "ServerConfig":
        """
        Create configuration with the port read from a file.

        Args:
            path: Port file to read. Defaults to the ``port_file`` field
                (from ``overrides`` or the dataclass default).
            **overrides: Other field values.

        Raises:
            ConfigError: If the port file is missing or invalid.
        """
        config = cls(**overrides)
        if path is not None:
            config.port_file = path
        config.port = read_port_file(config.port_file)
        return config

    @classmethod
    def from_env(
        cls, base: Optional["ServerConfig"] = None, include_port: bool = True
    ) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        TINYHTTPD_HOST       Server host
        TINYHTTPD_PORT       Server port
        TINYHTTPD_LOG_LEVEL  Logging level

        Unset variables keep the value from ``base`` (or the defaults).
        With include_port=False, TINYHTTPD_PORT is not read at all; the
        CLI passes that when --port already decided the port.

        =====================================================================
        """
        base = base or cls()

        port = base.port
        if include_port and "TINYHTTPD_PORT" in os.environ:
            port = parse_port(os.environ["TINYHTTPD_PORT"], source="TINYHTTPD_PORT")

        return cls(
            host=os.getenv("TINYHTTPD_HOST", base.host),
            port=port,
            port_file=base.port_file,
            backlog=base.backlog,
            buffer_size=base.buffer_size,
            timeout=base.timeout,
            accept_timeout=base.accept_timeout,
            exit_on_accept_error=base.exit_on_accept_error,
            log_level=os.getenv("TINYHTTPD_LOG_LEVEL", base.log_level),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup, so bad values fail before any socket is
        created.

        Raises:
            ConfigError: On the first invalid value.
        """
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 0:
            raise ConfigError("backlog must be >= 0")

        if self.buffer_size < 2:
            raise ConfigError("buffer_size must be >= 2")

        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError("timeout must be > 0")

        if self.accept_timeout is not None and self.accept_timeout <= 0:
            raise ConfigError("accept_timeout must be > 0")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigError(f"Unknown log level: {self.log_level}")
