"""Port for the remote object store the controller watches and writes back to."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from reconcilekit.domain.model import ListResult, ObjectKey, Resource, WatchEvent


@runtime_checkable
class Watch(Protocol):
    """Incremental change feed; iteration ends when the stream closes."""

    def __iter__(self) -> Iterator[WatchEvent]: ...

    def close(self) -> None: ...


@runtime_checkable
class RemoteStore(Protocol):
    """List/watch/get/update contract over named, versioned objects."""

    def list(self) -> ListResult: ...

    def watch(self, resource_version: str) -> Watch:
        """Stream changes that happened strictly after ``resource_version``.

        Raises ``ResourceExpiredError`` when the version is no longer retained.
        """
        ...

    def get(self, key: ObjectKey) -> Resource: ...

    def update_status(self, obj: Resource) -> Resource:
        """Write ``obj.status`` if ``obj.metadata.resource_version`` is current.

        Raises ``ConflictError`` when the version token is stale.
        """
        ...

    def create(self, obj: Resource) -> Resource: ...


__all__ = ["RemoteStore", "Watch"]
