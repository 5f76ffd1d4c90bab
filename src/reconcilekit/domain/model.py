"""Value types shared by the mirror, queue, controller and store adapters."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

type Status = dict[str, Any]


@dataclass(frozen=True, slots=True, order=True)
class ObjectKey:
    """Stable identity of one resource instance.

    Cluster-scoped objects use an empty namespace and render as the bare name.
    """

    namespace: str
    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("ObjectKey requires a non-empty name")
        if "/" in self.name or "/" in self.namespace:
            msg = f"ObjectKey parts must not contain '/': {self.namespace!r}, {self.name!r}"
            raise ValueError(msg)

    def __str__(self) -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> ObjectKey:
        """Parse ``namespace/name`` or ``name`` into a key."""

        namespace, sep, name = value.partition("/")
        if not sep:
            return cls(namespace="", name=namespace)
        return cls(namespace=namespace, name=name)


@dataclass(slots=True)
class ObjectMeta:
    name: str
    namespace: str = ""
    resource_version: str = ""
    labels: dict[str, str] = field(default_factory=dict[str, str])


@dataclass(slots=True)
class Resource:
    """Last observed representation of a remote object."""

    metadata: ObjectMeta
    spec: dict[str, Any] = field(default_factory=dict[str, Any])
    status: Status = field(default_factory=dict[str, Any])

    @property
    def key(self) -> ObjectKey:
        return ObjectKey(namespace=self.metadata.namespace, name=self.metadata.name)

    @property
    def resource_version(self) -> str:
        return self.metadata.resource_version

    def deep_copy(self) -> Resource:
        return copy.deepcopy(self)


class EventType(StrEnum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True, slots=True)
class WatchEvent:
    """One entry of a store's incremental change feed."""

    type: EventType
    object: Resource


@dataclass(slots=True)
class ListResult:
    """Full snapshot plus the version to start watching from."""

    items: list[Resource]
    resource_version: str
