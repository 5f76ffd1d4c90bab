"""Thread-safe in-memory object store.

Implements the ``RemoteStore`` port with monotonic integer resource versions
and a bounded event history, which is enough to drive the controller in tests
and local runs with the same list+watch semantics as a remote API.
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator
from logging import getLogger
from queue import SimpleQueue
from typing import TYPE_CHECKING

from reconcilekit.domain.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    ResourceExpiredError,
)
from reconcilekit.domain.model import EventType, ListResult, Resource, WatchEvent

if TYPE_CHECKING:
    from reconcilekit.domain.model import ObjectKey
    from reconcilekit.domain.ports.store import RemoteStore, Watch

log = getLogger(__name__)

DEFAULT_HISTORY_SIZE = 1000


class MemoryWatch:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._events: SimpleQueue[WatchEvent | None] = SimpleQueue()
        self._closed = False

    def __iter__(self) -> Iterator[WatchEvent]:
        while True:
            event = self._events.get()
            if event is None:
                return
            yield event

    def push(self, event: WatchEvent) -> None:
        if not self._closed:
            self._events.put(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._store.unregister(self)
        self._events.put(None)


class InMemoryStore:
    """Versioned object store living in process memory."""

    def __init__(self, *, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._lock = threading.Lock()
        self._objects: dict[ObjectKey, Resource] = {}
        self._version = 0
        self._history: deque[tuple[int, WatchEvent]] = deque(maxlen=history_size)
        self._watchers: list[MemoryWatch] = []
        self.status_updates: list[Resource] = []

    @property
    def resource_version(self) -> str:
        with self._lock:
            return str(self._version)

    def list(self) -> ListResult:
        with self._lock:
            items = [obj.deep_copy() for obj in self._objects.values()]
            return ListResult(items=items, resource_version=str(self._version))

    def watch(self, resource_version: str) -> Watch:
        since = int(resource_version) if resource_version else 0
        watch = MemoryWatch(self)
        with self._lock:
            oldest = self._history[0][0] if self._history else self._version + 1
            if since < oldest - 1 and since < self._version:
                raise ResourceExpiredError(
                    f"Resource version {since} is older than the retained history ({oldest})",
                    resource_version=resource_version,
                )
            for version, event in self._history:
                if version > since:
                    watch.push(_copy_event(event))
            self._watchers.append(watch)
        return watch

    def unregister(self, watch: MemoryWatch) -> None:
        with self._lock:
            if watch in self._watchers:
                self._watchers.remove(watch)

    def get(self, key: ObjectKey) -> Resource:
        with self._lock:
            obj = self._objects.get(key)
            if obj is None:
                raise NotFoundError(f"{key} not found", key=key)
            return obj.deep_copy()

    def create(self, obj: Resource) -> Resource:
        key = obj.key
        with self._lock:
            if key in self._objects:
                raise AlreadyExistsError(f"{key} already exists", key=key)
            return self._store_locked(obj, EventType.ADDED)

    def apply(self, obj: Resource) -> Resource:
        """Create or replace ``obj`` regardless of its version token."""

        with self._lock:
            kind = EventType.MODIFIED if obj.key in self._objects else EventType.ADDED
            return self._store_locked(obj, kind)

    def update_status(self, obj: Resource) -> Resource:
        key = obj.key
        with self._lock:
            current = self._objects.get(key)
            if current is None:
                raise NotFoundError(f"{key} not found", key=key)
            if obj.resource_version != current.resource_version:
                raise ConflictError(
                    f"{key} has version {current.resource_version}, "
                    f"update was based on {obj.resource_version}",
                    key=key,
                )
            updated = current.deep_copy()
            updated.status = obj.deep_copy().status
            stored = self._store_locked(updated, EventType.MODIFIED)
            self.status_updates.append(stored.deep_copy())
            return stored

    def delete(self, key: ObjectKey) -> None:
        with self._lock:
            obj = self._objects.pop(key, None)
            if obj is None:
                raise NotFoundError(f"{key} not found", key=key)
            self._version += 1
            deleted = obj.deep_copy()
            deleted.metadata.resource_version = str(self._version)
            self._record_locked(WatchEvent(type=EventType.DELETED, object=deleted))

    def close_watches(self) -> None:
        """End every open watch stream, as a server dropping connections would."""

        with self._lock:
            watchers = list(self._watchers)
        for watch in watchers:
            watch.close()

    def _store_locked(self, obj: Resource, kind: EventType) -> Resource:
        self._version += 1
        stored = obj.deep_copy()
        stored.metadata.resource_version = str(self._version)
        self._objects[stored.key] = stored
        self._record_locked(WatchEvent(type=kind, object=stored))
        return stored.deep_copy()

    def _record_locked(self, event: WatchEvent) -> None:
        self._history.append((self._version, event))
        for watch in self._watchers:
            watch.push(_copy_event(event))


def _copy_event(event: WatchEvent) -> WatchEvent:
    return WatchEvent(type=event.type, object=event.object.deep_copy())


if TYPE_CHECKING:
    _store_check: RemoteStore = InMemoryStore()
