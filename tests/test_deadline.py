"""
Tests for bounded collaborator calls.
"""

import threading
import time

import pytest

from pineforge.core.errors import CallTimeout, CollaboratorError
from pineforge.core.reliability.deadline import call_with_timeout


def test_returns_result():
    assert call_with_timeout(lambda a, b=0: a + b, 1.0, 2, b=3) == 5


def test_propagates_exceptions():
    def boom():
        raise ValueError("nope")

    with pytest.raises(ValueError, match="nope"):
        call_with_timeout(boom, 1.0)


def test_times_out():
    with pytest.raises(CallTimeout) as exc_info:
        call_with_timeout(time.sleep, 0.05, 1.0)
    assert isinstance(exc_info.value, CollaboratorError)
    assert exc_info.value.status_code == 504


@pytest.mark.parametrize("timeout", [None, 0, -1])
def test_no_bound_runs_inline(timeout):
    assert call_with_timeout(threading.current_thread, timeout) is threading.current_thread()


def test_runs_off_the_caller_thread():
    assert call_with_timeout(threading.current_thread, 1.0) is not threading.current_thread()


def test_slow_calls_do_not_delay_new_ones():
    release = threading.Event()
    blockers = [
        threading.Thread(target=call_with_timeout, args=(release.wait, 5.0), daemon=True)
        for _ in range(24)
    ]
    try:
        for t in blockers:
            t.start()
        time.sleep(0.05)

        started = time.monotonic()
        assert call_with_timeout(lambda: "instant", 0.5) == "instant"
        assert time.monotonic() - started < 0.5
    finally:
        release.set()
        for t in blockers:
            t.join(timeout=5)
