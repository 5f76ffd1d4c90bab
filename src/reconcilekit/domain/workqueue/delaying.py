"""Work queue that can hold keys back until an activation time."""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from collections.abc import Hashable

from .queue import WorkQueue


class DelayingQueue[K: Hashable](WorkQueue[K]):
    """Adds ``add_after`` on top of the deduplicating queue.

    Delayed keys sit in a heap ordered by ready time; a waiter thread moves
    them into the pending list once they are due. A key that is already
    waiting keeps the earlier of its two ready times.
    """

    def __init__(self, name: str = "") -> None:
        super().__init__(name)
        self._delayed = threading.Condition(self._lock)
        self._heap: list[tuple[float, int, K]] = []
        self._waiting: dict[K, float] = {}
        self._sequence = itertools.count()
        self._waiter = threading.Thread(
            target=self._wait_loop,
            name=f"workqueue-waiter-{name}" if name else "workqueue-waiter",
            daemon=True,
        )
        self._waiter.start()

    def add_after(self, key: K, delay: float) -> None:
        with self._lock:
            if self._shutting_down:
                return
            if delay <= 0:
                self._add_locked(key)
                return
            ready_at = time.monotonic() + delay
            current = self._waiting.get(key)
            if current is not None and current <= ready_at:
                return
            self._waiting[key] = ready_at
            heapq.heappush(self._heap, (ready_at, next(self._sequence), key))
            self._delayed.notify()

    def waiting(self) -> int:
        """Number of keys held back for a future activation time."""

        with self._lock:
            return len(self._waiting)

    def _wait_loop(self) -> None:
        with self._lock:
            while not self._shutting_down:
                now = time.monotonic()
                while self._heap and self._heap[0][0] <= now:
                    ready_at, _, key = heapq.heappop(self._heap)
                    # entries superseded by an earlier ready time are skipped
                    if self._waiting.get(key) != ready_at:
                        continue
                    del self._waiting[key]
                    self._add_locked(key)
                timeout = self._heap[0][0] - now if self._heap else None
                self._delayed.wait(timeout)

    def _on_shutdown(self) -> None:
        with self._lock:
            self._delayed.notify_all()
