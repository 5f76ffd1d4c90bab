"""Errors raised by store ports and reconcile steps."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .model import ObjectKey


class StoreError(RuntimeError):
    """Raised when the remote object store rejects or fails a request."""


class KeyedStoreError(StoreError):
    def __init__(self, message: str, *, key: ObjectKey | None = None) -> None:
        super().__init__(message)
        self.key = key


class ConflictError(KeyedStoreError):
    """The supplied resource version is stale."""


class NotFoundError(KeyedStoreError):
    """The requested object does not exist."""


class AlreadyExistsError(KeyedStoreError):
    """An object with the same key already exists."""


class ResourceExpiredError(StoreError):
    """The requested watch version is older than the store retains."""

    def __init__(self, message: str, *, resource_version: str | None = None) -> None:
        super().__init__(message)
        self.resource_version = resource_version


class ReconcileError(RuntimeError):
    """Raised by reconcile steps that cannot bring an object to its desired state."""
