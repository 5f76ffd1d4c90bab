"""Reconcile step that splits one deployment into per-cluster deployments.

A root object is fanned out into one derived object per cluster known at
reconcile time. Derived objects carry a cluster label and are leaves: the
splitter leaves them untouched when they come back through the controller.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .errors import AlreadyExistsError, ReconcileError
from .model import ObjectMeta, Resource

if TYPE_CHECKING:
    from .mirror import LocalMirror
    from .ports.store import RemoteStore

log = getLogger(__name__)

CLUSTER_LABEL = "reconcilekit.io/cluster"
OWNER_LABEL = "reconcilekit.io/owned-by"

type ClusterSource = Callable[[], Iterable[str]]


def derived_name(name: str, cluster: str) -> str:
    return f"{name}--{cluster}"


def split_replicas(total: int, parts: int) -> list[int]:
    """Spread ``total`` over ``parts`` buckets; the first buckets get the remainder."""

    if parts < 1:
        raise ValueError("Cannot split replicas over zero clusters")
    if total < 0:
        raise ValueError("Replica count must be non-negative")
    share, remainder = divmod(total, parts)
    return [share + (1 if index < remainder else 0) for index in range(parts)]


@dataclass(slots=True)
class DeploymentSplitter:
    store: RemoteStore
    clusters: ClusterSource

    def __call__(self, obj: Resource) -> None:
        if CLUSTER_LABEL in obj.metadata.labels:
            return

        cluster_names = sorted(set(self.clusters()))
        if not cluster_names:
            raise ReconcileError(f"No clusters available to split {obj.key}")

        replicas = _replica_count(obj)
        shares = split_replicas(replicas, len(cluster_names))
        for cluster, share in zip(cluster_names, shares, strict=True):
            self._ensure_derived(obj, cluster, share)

        obj.status["replicas"] = replicas
        obj.status["clusters"] = cluster_names

    def _ensure_derived(self, root: Resource, cluster: str, replicas: int) -> None:
        labels = dict(root.metadata.labels)
        labels[CLUSTER_LABEL] = cluster
        labels[OWNER_LABEL] = root.metadata.name
        spec = dict(root.spec)
        spec["replicas"] = replicas
        derived = Resource(
            metadata=ObjectMeta(
                name=derived_name(root.metadata.name, cluster),
                namespace=root.metadata.namespace,
                labels=labels,
            ),
            spec=spec,
        )
        try:
            self.store.create(derived)
        except AlreadyExistsError:
            log.debug("Derived object %s already exists", derived.key)
            return
        log.info("Created %s for cluster %s", derived.key, cluster)


def _replica_count(obj: Resource) -> int:
    value = obj.spec.get("replicas", 1)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ReconcileError(f"Invalid spec.replicas on {obj.key}: {value!r}")
    return value


def static_clusters(names: Iterable[str]) -> ClusterSource:
    fixed = tuple(names)
    return lambda: fixed


def mirror_clusters(mirror: LocalMirror) -> ClusterSource:
    """Cluster names read from a mirror of the cluster collection at call time."""

    return lambda: [key.name for key in mirror.list_keys()]
