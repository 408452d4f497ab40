"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing underneath the HTTP logic:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                                │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Creates the listening TCP socket                                 │
    │  • Binds to IP:PORT, listens with a backlog of 3                    │
    │  • Accepts ONE connection at a time and hands it off                │
    │  • Stops when its ShutdownToken is set                              │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    │ One connection at a time
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                  │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • Wraps a client socket                                            │
    │  • Single-chunk receive, two-write send                             │
    │  • Closes exactly once                                              │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     SHUTDOWN TOKEN + SIGNALS                         │
    │  ─────────────────────────────────────────────────────────────────  │
    │  • ShutdownToken: monotonic "please stop" flag                      │
    │  • shutdown_on_signals(): SIGINT/SIGTERM → token.set()              │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .shutdown import ShutdownToken, shutdown_on_signals

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ShutdownToken",
    "shutdown_on_signals",
]
