"""Execution deadline for the synchronous part of bot code."""

import signal
import threading
import time

from domain.exceptions import ExecutionTimeout
from infrastructure.logging import get_logger

logger = get_logger(__name__)

# Re-fire interval after the deadline, so a handler swallowed by bot code fires again
_REARM_INTERVAL = 0.05


class _DeadlineExceeded(BaseException):
    """Raised inside bot code when its deadline passes.

    Not an ``Exception`` subclass, so ``except Exception`` in bot code does
    not swallow it.
    """


class ExecutionDeadline:
    """
    Context manager bounding how long bot code may block the host.

    Uses ``SIGALRM``/``setitimer``, so it only guards code running on the main
    thread of a POSIX host. Elsewhere it logs a warning and runs unguarded.
    """

    def __init__(self, seconds: float):
        """
        Initialize the deadline.

        Args:
            seconds: Wall-clock budget; zero or less disables the deadline
        """
        self.seconds = seconds
        self.expired = False
        self.elapsed = 0.0
        self._armed = False
        self._original_handler = None
        self._start_time = None

    @staticmethod
    def supported() -> bool:
        return hasattr(signal, "SIGALRM") and threading.current_thread() is threading.main_thread()

    def __enter__(self) -> "ExecutionDeadline":
        self._start_time = time.monotonic()
        if self.seconds <= 0:
            return self
        if not self.supported():
            logger.warning("Execution deadline not enforced: SIGALRM unavailable outside the main thread")
            return self
        self._original_handler = signal.signal(signal.SIGALRM, self._timeout_handler)
        signal.setitimer(signal.ITIMER_REAL, self.seconds, _REARM_INTERVAL)
        self._armed = True
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self._armed:
            # Ignore first so a late tick cannot fire while disarming
            signal.signal(signal.SIGALRM, signal.SIG_IGN)
            signal.setitimer(signal.ITIMER_REAL, 0)
            original = self._original_handler
            signal.signal(signal.SIGALRM, original if original is not None else signal.SIG_DFL)
            self._armed = False
        self.elapsed = time.monotonic() - self._start_time

        if self.expired:
            raise ExecutionTimeout(self.seconds) from exc
        return False

    def _timeout_handler(self, signum, frame):
        """Signal handler for the execution deadline."""
        self.expired = True
        raise _DeadlineExceeded()
