"""
Bounded collaborator calls.

Sandbox, storage and generation calls must never block a request
forever.  ``call_with_timeout`` runs the call on its own daemon thread
and raises ``CallTimeout`` once the bound elapses; callers handle that
exactly like any other failed call.

Every call starts immediately, so the bound measures the call itself
and never time spent waiting behind other slow calls.  A timed-out call
keeps running on its thread until the collaborator returns; its result
is discarded.
"""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from typing import Any, Callable, TypeVar

from pineforge.core.errors import CallTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run_into(future: concurrent.futures.Future, fn: Callable[..., Any], args, kwargs) -> None:
    if not future.set_running_or_notify_cancel():
        return
    try:
        result = fn(*args, **kwargs)
    except BaseException as e:
        future.set_exception(e)
    else:
        future.set_result(result)


def call_with_timeout(
    fn: Callable[..., T],
    timeout: float | None,
    *args: Any,
    **kwargs: Any,
) -> T:
    """Call ``fn(*args, **kwargs)``, giving up after ``timeout`` seconds.

    ``timeout`` of None or <= 0 calls inline with no bound.

    Raises:
        CallTimeout: The call did not finish in time.
        Exception: Whatever ``fn`` raised.
    """
    if not timeout or timeout <= 0:
        return fn(*args, **kwargs)

    name = getattr(fn, "__qualname__", repr(fn))
    future: concurrent.futures.Future = concurrent.futures.Future()
    threading.Thread(
        target=_run_into,
        args=(future, fn, args, kwargs),
        name=f"pineforge-call:{name}",
        daemon=True,
    ).start()

    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError:
        logger.warning("%s timed out after %.1fs", name, timeout)
        raise CallTimeout(f"{name} timed out after {timeout}s") from None
