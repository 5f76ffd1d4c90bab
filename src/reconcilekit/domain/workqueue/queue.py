"""Deduplicating work queue with in-flight tracking.

A key lives in at most one of two places: the pending list (waiting for a
worker) or the in-flight set (handed out by ``get`` and not yet ``done``).
The dirty set records every key that needs processing, which lets ``add``
collapse repeated events and lets ``done`` redeliver keys that changed while a
worker held them.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Hashable
from logging import getLogger

log = getLogger(__name__)


class WorkQueue[K: Hashable]:
    """FIFO of unique keys; a key is never handed to two workers at once."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._ready = threading.Condition(self._lock)
        self._idle = threading.Condition(self._lock)
        self._queue: deque[K] = deque()
        self._dirty: set[K] = set()
        self._processing: set[K] = set()
        self._shutting_down = False

    def add(self, key: K) -> None:
        with self._lock:
            self._add_locked(key)

    def _add_locked(self, key: K) -> None:
        if self._shutting_down:
            return
        if key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            return
        self._queue.append(key)
        self._ready.notify()

    def get(self) -> K | None:
        """Block until a key is ready; return ``None`` once the queue is shut down.

        Keys still pending at shutdown are not handed out; they are rebuilt
        from the next listing.
        """

        with self._lock:
            while not self._queue and not self._shutting_down:
                self._ready.wait()
            if self._shutting_down:
                return None
            key = self._queue.popleft()
            self._processing.add(key)
            self._dirty.discard(key)
            return key

    def done(self, key: K) -> None:
        with self._lock:
            self._processing.discard(key)
            if key in self._dirty:
                self._queue.append(key)
                self._ready.notify()
            if not self._processing:
                self._idle.notify_all()

    def __len__(self) -> int:
        with self._lock:
            return len(self._queue)

    def in_flight(self) -> int:
        with self._lock:
            return len(self._processing)

    @property
    def shutting_down(self) -> bool:
        with self._lock:
            return self._shutting_down

    def shutdown(self) -> None:
        """Stop accepting keys and wake every blocked ``get``."""

        with self._lock:
            self._shutting_down = True
            self._ready.notify_all()
        self._on_shutdown()

    def shutdown_with_drain(self, timeout: float | None = None) -> bool:
        """Shut down, then wait until no key is in flight.

        Returns ``False`` if ``timeout`` elapsed with work still in flight.
        """

        self.shutdown()
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            while self._processing:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    log.warning(
                        "Queue %r drain timed out with %d key(s) in flight",
                        self.name,
                        len(self._processing),
                    )
                    return False
                self._idle.wait(remaining)
        return True

    def _on_shutdown(self) -> None:
        """Hook for subclasses that own background threads."""
