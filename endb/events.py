"""
Change notifications: listeners registered per event name, delivered on a
background worker so a slow or failing listener never blocks the caller.

Delivery is best-effort and in publish order. Listener exceptions are logged
and dropped. At most max_pending notifications wait for delivery; beyond
that new ones are dropped with a warning.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

EVENT_GET = "get"
EVENT_SET = "set"
EVENTS = (EVENT_GET, EVENT_SET)

DEFAULT_MAX_PENDING = 1024
_POLL_S = 0.1

Listener = Callable[[Any], None]


class EventBus:
    """Callback lists per event name with a lazily started daemon delivery thread."""

    def __init__(self, name: str = "endb", max_pending: int = DEFAULT_MAX_PENDING) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self._name = name
        self._listeners: Dict[str, List[Listener]] = {e: [] for e in EVENTS}
        self._queue: "queue.Queue[Tuple[Listener, Any]]" = queue.Queue(maxsize=max_pending)
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._closed = threading.Event()

    def on(self, event: str, listener: Listener) -> Listener:
        """Register listener for event. Returns the listener so this works as a decorator."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event {event!r}; expected one of {EVENTS}")
        if not callable(listener):
            raise TypeError("listener must be callable")
        with self._lock:
            self._listeners[event].append(listener)
        logger.debug("Registered %s listener on %s: %r", event, self._name, listener)
        return listener

    def off(self, event: str, listener: Listener) -> bool:
        """Remove one registration. Returns False if it was not registered."""
        with self._lock:
            try:
                self._listeners.get(event, []).remove(listener)
            except ValueError:
                return False
        return True

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(event, []))

    def pending(self) -> int:
        """Notifications queued and not yet handed to a listener."""
        return self._queue.qsize()

    def emit(self, event: str, payload: Any) -> int:
        """Queue payload for every listener of event. Returns the number queued."""
        if self._closed.is_set():
            return 0
        with self._lock:
            targets = list(self._listeners.get(event, []))
        if not targets:
            return 0
        self._ensure_worker()
        queued = 0
        for listener in targets:
            try:
                self._queue.put_nowait((listener, payload))
            except queue.Full:
                logger.warning("Dropped %s notification on %s: %d pending", event, self._name, self._queue.maxsize)
                continue
            queued += 1
        return queued

    def wait_idle(self) -> None:
        """Block until every queued notification has been delivered."""
        self._queue.join()

    def close(self) -> None:
        """Stop accepting notifications. Does not wait; the worker exits once the queue is empty."""
        self._closed.set()
        with self._lock:
            self._worker = None

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is not None and self._worker.is_alive():
                return
            self._worker = threading.Thread(
                target=self._run, name=f"endb-events-{self._name}", daemon=True
            )
            self._worker.start()

    def _run(self) -> None:
        while True:
            try:
                listener, payload = self._queue.get(timeout=_POLL_S)
            except queue.Empty:
                if self._closed.is_set():
                    return
                continue
            try:
                listener(payload)
            except Exception as exc:
                logger.warning("Listener %r failed on %s: %s", listener, self._name, exc)
            finally:
                self._queue.task_done()
