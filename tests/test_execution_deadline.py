import signal
import time

import pytest

from domain.exceptions import ExecutionTimeout
from infrastructure.execution.resources import ExecutionDeadline

needs_alarm = pytest.mark.skipif(not hasattr(signal, "SIGALRM"), reason="needs SIGALRM")


@needs_alarm
def test_busy_loop_is_interrupted():
    with pytest.raises(ExecutionTimeout) as excinfo:
        with ExecutionDeadline(0.1):
            while True:
                pass
    assert excinfo.value.seconds == 0.1


@needs_alarm
def test_catching_exception_does_not_swallow_the_deadline():
    with pytest.raises(ExecutionTimeout):
        with ExecutionDeadline(0.1):
            while True:
                try:
                    time.sleep(0.01)
                except Exception:
                    pass


@needs_alarm
def test_fast_code_finishes_and_restores_handler():
    before = signal.getsignal(signal.SIGALRM)
    with ExecutionDeadline(1.0) as deadline:
        total = sum(range(100))
    assert total == 4950
    assert deadline.expired is False
    assert deadline.elapsed < 1.0
    assert signal.getsignal(signal.SIGALRM) == before
    assert signal.getitimer(signal.ITIMER_REAL) == (0.0, 0.0)


def test_non_positive_deadline_is_disabled():
    with ExecutionDeadline(0) as deadline:
        time.sleep(0.01)
    assert deadline.expired is False
    assert deadline.elapsed > 0


@needs_alarm
def test_errors_inside_the_block_propagate():
    with pytest.raises(ValueError):
        with ExecutionDeadline(1.0):
            raise ValueError("bad")
