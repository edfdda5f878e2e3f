"""Cooperative cancellation for long-running transcription runs.

A :class:`CancelToken` is threaded through the orchestrator and checked only
at defined suspension points; it never interrupts an in-flight external call.
Signal handlers can be installed so that Ctrl+C requests a graceful stop.
"""

from __future__ import annotations

import logging
import signal
import threading

logger = logging.getLogger(__name__)

_signal_handlers_installed: bool = False
# Token cancelled by the installed handler; rebound by every install call.
_active_token: CancelToken | None = None


class CancelToken:
    """Thread-safe cancellation flag.

    Examples:
        >>> token = CancelToken()
        >>> token.cancelled
        False
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(self) -> None:
        """Create an un-cancelled token."""
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation; idempotent."""
        if not self._event.is_set():
            logger.info("Cancellation requested")
        self._event.set()

    def reset(self) -> None:
        """Clear the flag so the token can be reused for a new run."""
        self._event.clear()


def _signal_handler(signum: int, frame: object) -> None:
    """Cancel the currently bound token on SIGINT/SIGTERM.

    Args:
        signum: Signal number received.
        frame: Current stack frame (unused).
    """
    sig_name = signal.Signals(signum).name
    token = _active_token
    if token is None:
        logger.info(f"Received {sig_name} with no active run")
        return
    logger.info(f"Received {sig_name}, requesting graceful cancellation")
    token.cancel()


def install_signal_handlers(token: CancelToken) -> None:
    """Route SIGINT and SIGTERM to *token*.

    The handlers are registered once per process; later calls only rebind
    them to the new token, so a signal always cancels the latest run.

    Args:
        token: Token to cancel when a signal arrives.
    """
    global _signal_handlers_installed, _active_token

    _active_token = token
    if _signal_handlers_installed:
        logger.debug("Signal handlers already installed, rebound to new token")
        return

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)
    _signal_handlers_installed = True
    logger.debug("Signal handlers installed for SIGINT and SIGTERM")
