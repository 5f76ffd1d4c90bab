"""Local mirror of the watched resource collection.

The mirror owns an in-memory copy of every object the store reports. A single
feeder thread (``run``) writes it: an initial full listing, then the change
feed from the listed version onward. When the feed breaks or its version
expires the mirror lists again from scratch. Every change is published as a
``Notification`` on the ``notifications`` channel; consumers read objects back
through ``get``, which hands out deep copies so the cache is never mutated
outside the feeder thread.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from logging import getLogger
from queue import SimpleQueue
from typing import TYPE_CHECKING

from .errors import ResourceExpiredError, StoreError
from .model import EventType

if TYPE_CHECKING:
    from .model import ObjectKey, Resource, WatchEvent
    from .ports.store import RemoteStore, Watch

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notification:
    type: EventType
    key: ObjectKey


class LocalMirror:
    def __init__(
        self,
        store: RemoteStore,
        *,
        resync_period: float = 10 * 60 * 60.0,
        relist_backoff: float = 1.0,
        name: str = "",
        publish: bool = True,
    ) -> None:
        if relist_backoff <= 0:
            raise ValueError("relist_backoff must be positive")
        self.store = store
        self.resync_period = resync_period
        self.relist_backoff = relist_backoff
        self.name = name
        self.publish = publish
        self.notifications: SimpleQueue[Notification] = SimpleQueue()
        self._lock = threading.Lock()
        self._items: dict[ObjectKey, Resource] = {}
        self._resource_version = ""
        self._watch: Watch | None = None
        self._synced = threading.Event()
        self._stop = threading.Event()

    def get(self, key: ObjectKey) -> Resource | None:
        """Return a private copy of the cached object, or ``None`` if absent."""

        with self._lock:
            obj = self._items.get(key)
        return obj.deep_copy() if obj is not None else None

    def list_keys(self) -> list[ObjectKey]:
        with self._lock:
            return sorted(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    @property
    def resource_version(self) -> str:
        with self._lock:
            return self._resource_version

    @property
    def has_synced(self) -> bool:
        return self._synced.is_set()

    def wait_for_sync(self, timeout: float | None = None) -> bool:
        """Block until the initial listing has been applied."""

        return self._synced.wait(timeout)

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def run(self) -> None:
        """Feed the cache until ``stop`` is called. Blocks the calling thread."""

        resync = None
        if self.resync_period > 0:
            resync = threading.Thread(
                target=self._resync_loop, name=f"mirror-resync-{self.name}", daemon=True
            )
            resync.start()

        log.info("Starting mirror %r", self.name)
        while not self._stop.is_set():
            try:
                self._list_and_watch()
            except ResourceExpiredError as exc:
                log.info("Watch for mirror %r expired (%s); relisting", self.name, exc)
            except StoreError as exc:
                log.warning("List/watch for mirror %r failed: %s", self.name, exc)
            except Exception:
                log.exception("Unexpected list/watch failure in mirror %r", self.name)
            if self._stop.wait(self.relist_backoff):
                break

        if resync is not None:
            resync.join()
        log.info("Stopped mirror %r", self.name)

    def stop(self) -> None:
        self._stop.set()
        with self._lock:
            watch = self._watch
        if watch is not None:
            watch.close()

    def _list_and_watch(self) -> None:
        result = self.store.list()
        self._replace(result.items, result.resource_version)
        if not self._synced.is_set():
            log.info("Mirror %r synced %d object(s)", self.name, len(result.items))
            self._synced.set()

        while not self._stop.is_set():
            watch = self.store.watch(self.resource_version)
            with self._lock:
                self._watch = watch
            received = 0
            try:
                # stop() may have run before the watch was registered
                if self._stop.is_set():
                    return
                for event in watch:
                    self._apply(event)
                    received += 1
            finally:
                with self._lock:
                    self._watch = None
                watch.close()
            if received == 0 and self._stop.wait(self.relist_backoff):
                return

    def _replace(self, items: list[Resource], resource_version: str) -> None:
        fresh = {obj.key: obj for obj in items}
        with self._lock:
            previous = self._items
            self._items = fresh
            self._resource_version = resource_version

        for key in sorted(previous.keys() - fresh.keys()):
            self._publish(EventType.DELETED, key)
        for key in fresh:
            kind = EventType.MODIFIED if key in previous else EventType.ADDED
            self._publish(kind, key)

    def _apply(self, event: WatchEvent) -> None:
        obj = event.object
        key = obj.key
        with self._lock:
            if event.type is EventType.DELETED:
                self._items.pop(key, None)
            else:
                self._items[key] = obj
            if obj.resource_version:
                self._resource_version = obj.resource_version
        self._publish(event.type, key)

    def _resync_loop(self) -> None:
        while not self._stop.wait(self.resync_period):
            if not self._synced.is_set():
                continue
            keys = self.list_keys()
            log.debug("Resyncing %d object(s) in mirror %r", len(keys), self.name)
            for key in keys:
                self._publish(EventType.MODIFIED, key)

    def _publish(self, kind: EventType, key: ObjectKey) -> None:
        # lookup-only mirrors have no consumer draining the channel
        if self.publish:
            self.notifications.put(Notification(type=kind, key=key))
