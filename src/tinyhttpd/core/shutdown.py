"""
=============================================================================
SHUTDOWN TOKEN AND SIGNAL HANDLING
=============================================================================

The accept loop stops when someone asks it to. "Someone" is usually the
OS, through a signal:

    SIGINT (2):   Ctrl+C in the terminal
    SIGTERM (15): kill <pid>, docker stop, systemd stop

Instead of a process-wide global flag, the request to stop travels in
an explicit ShutdownToken:

    ┌──────────────────┐   set()    ┌───────────────┐  is_set()  ┌─────────────┐
    │ signal handler   │ ─────────► │ ShutdownToken │ ◄───────── │ accept loop │
    │ (CLI boundary)   │            └───────────────┘            └─────────────┘
    └──────────────────┘

The token is monotonic: once set it stays set. The loop only looks at
it between iterations, so a signal never cuts a request in half. Tests
simply call token.set() from another thread, no signals involved.

=============================================================================
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, Sequence


logger = logging.getLogger(__name__)


SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ShutdownToken:
    """
    A one-way "please stop" flag shared between a signal handler (or
    another thread) and the accept loop.

    Backed by threading.Event so waiting with a timeout is possible.
    """

    def __init__(self):
        self._event = threading.Event()

    def set(self):
        """Request shutdown. Calling it again has no further effect."""
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until shutdown is requested.

        Returns:
            True if the token is set, False on timeout.
        """
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"ShutdownToken(set={self.is_set()})"


@contextmanager
def shutdown_on_signals(
    token: ShutdownToken,
    signals: Sequence[signal.Signals] = SHUTDOWN_SIGNALS,
) -> Iterator[ShutdownToken]:
    """
    Install handlers that set ``token`` when one of ``signals`` arrives.

    The previous handlers are restored on exit, so an embedding
    application gets its own handlers back.

    Must be entered from the main thread: Python only delivers signals
    there and signal.signal() raises ValueError elsewhere.

    Usage:
        token = ShutdownToken()
        with shutdown_on_signals(token):
            server.run(token)
    """
    def shutdown_handler(signum, frame):
        signal_name = signal.Signals(signum).name
        logger.info(f"Received {signal_name}, server shutting down...")
        token.set()

    original_handlers = {}
    try:
        for sig in signals:
            original_handlers[sig] = signal.signal(sig, shutdown_handler)
        yield token
    finally:
        for sig, handler in original_handlers.items():
            # None means the old handler was not installed from Python
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
