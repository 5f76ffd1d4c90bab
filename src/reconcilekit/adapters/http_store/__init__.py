"""Public interface for the HTTP object store adapter."""

from __future__ import annotations

from .client import DEFAULT_COLLECTION, HttpObjectStore, HttpWatch
from .schema import ListPayload, ObjectPayload, WatchEventPayload
from .translator import payload_from_resource, resource_from_payload

__all__ = [
    "DEFAULT_COLLECTION",
    "HttpObjectStore",
    "HttpWatch",
    "ListPayload",
    "ObjectPayload",
    "WatchEventPayload",
    "payload_from_resource",
    "resource_from_payload",
]
