"""
BroadcastHub — thread-safe, in-process fan-out to live stream viewers.

Producers (file plan stage, webhooks, anything that wants to notify
viewers) call ``broadcast(event, data)``.  Every registered sink gets
the same pre-encoded SSE frame::

    event: file:created
    data: {"projectId": "p1", "path": "app/page.tsx", "action": "create"}

Delivery model
──────────────
- No backlog, no replay: a sink only sees events broadcast while it is
  registered.  At most once per sink.
- A sink whose ``write`` raises is removed on the spot.  No retry, no
  backoff, and the broadcaster is never told.
- ``_lock`` guards the sink set.  ``broadcast`` snapshots the set under
  the lock and writes outside it, so a slow sink never blocks
  registration or other broadcasts' bookkeeping.

One hub per process, created at startup and passed to whoever needs it.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from typing import Any, Generator, Protocol

logger = logging.getLogger(__name__)

# Idle keep-alive for SSE streams; comment lines are ignored by EventSource
_HEARTBEAT_FRAME = b": keep-alive\n\n"


class Sink(Protocol):
    """Anything that accepts encoded frames."""

    def write(self, frame: bytes) -> Any: ...


def format_frame(event: str, data: Any) -> bytes:
    """Encode one SSE frame: ``event: <name>\\ndata: <json>\\n\\n``."""
    payload = json.dumps(data, default=str, separators=(",", ":"))
    return f"event: {event}\ndata: {payload}\n\n".encode("utf-8")


class QueueSink:
    """Sink backed by a bounded queue, drained by one SSE generator.

    A viewer that stops reading fills its queue; the next write raises
    ``queue.Full`` and the hub drops and closes it, which ends the
    viewer's stream so the client reconnects.
    """

    def __init__(self, maxsize: int = 200) -> None:
        self._queue: queue.Queue[bytes] = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Mark the sink dead; its stream ends once the queue is drained."""
        self._closed.set()

    def write(self, frame: bytes) -> None:
        self._queue.put_nowait(frame)

    def get(self, timeout: float | None = None) -> bytes:
        """Next frame; raises ``queue.Empty`` after ``timeout``."""
        return self._queue.get(timeout=timeout)


class BroadcastHub:
    """Registry of live sinks with fire-and-forget broadcast."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sinks: set[Sink] = set()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._sinks)

    def register(self, sink: Sink) -> None:
        with self._lock:
            self._sinks.add(sink)
            count = len(self._sinks)
        logger.info("Stream subscriber registered (subscribers=%d)", count)

    def remove(self, sink: Sink) -> None:
        """Deregister a sink; unknown sinks are ignored."""
        with self._lock:
            if sink not in self._sinks:
                return
            self._sinks.discard(sink)
            count = len(self._sinks)
        logger.info("Stream subscriber removed (subscribers=%d)", count)

    def broadcast(self, event: str, data: Any = None) -> int:
        """Send one event to every registered sink.

        Returns:
            Number of sinks the frame was written to.
        """
        frame = format_frame(event, data)

        with self._lock:
            targets = list(self._sinks)

        delivered = 0
        for sink in targets:
            try:
                sink.write(frame)
                delivered += 1
            except Exception as e:
                self.remove(sink)
                if isinstance(sink, QueueSink):
                    sink.close()
                logger.info("Dropped stream subscriber on write failure: %s", type(e).__name__)

        logger.debug("event %s → %d/%d subscribers", event, delivered, len(targets))
        return delivered

    def stream(
        self,
        *,
        heartbeat_interval: float = 30.0,
        queue_size: int = 200,
    ) -> Generator[bytes, None, None]:
        """Yield frames for one connected viewer until it goes away.

        Registers a ``QueueSink`` on first iteration and deregisters it
        when the generator is closed (the web server closes it when the
        client disconnects).  If the hub drops the sink for falling
        behind, the stream yields what is queued and then ends.
        """
        sink = QueueSink(maxsize=queue_size)
        self.register(sink)
        try:
            yield format_frame("ping", "connected")
            while True:
                try:
                    yield sink.get(timeout=0 if sink.closed else heartbeat_interval)
                except queue.Empty:
                    if sink.closed:
                        logger.info("Stream ended: subscriber was dropped")
                        return
                    yield _HEARTBEAT_FRAME
        finally:
            self.remove(sink)
