"""Application wiring for the deployment splitting controller."""

from __future__ import annotations

from collections.abc import Iterable
from logging import getLogger
from typing import TYPE_CHECKING

from reconcilekit.adapters.http_store import DEFAULT_COLLECTION, HttpObjectStore
from reconcilekit.config import ControllerConfig, get_controller_config, get_store_config
from reconcilekit.domain.controller import Controller
from reconcilekit.domain.mirror import LocalMirror
from reconcilekit.domain.splitter import DeploymentSplitter, mirror_clusters, static_clusters

if TYPE_CHECKING:
    from reconcilekit.domain.ports.store import RemoteStore
    from reconcilekit.domain.reporting import ErrorReporter


log = getLogger(__name__)

CONTROLLER_NAME = "deployment-splitter"
CLUSTERS_COLLECTION = "clusters"


def build_splitter_controller(
    *,
    clusters: Iterable[str] | None = None,
    store: RemoteStore | None = None,
    cluster_store: RemoteStore | None = None,
    store_url: str | None = None,
    config: ControllerConfig | None = None,
    reporter: ErrorReporter | None = None,
) -> Controller:
    """Build a controller that splits deployments over clusters.

    With an explicit ``clusters`` list the cluster set is fixed. Otherwise the
    cluster collection is watched and each reconcile sees the clusters that
    exist at that moment.
    """

    def http_store(collection: str) -> HttpObjectStore:
        return HttpObjectStore(config=get_store_config(base_url=store_url), collection=collection)

    effective_store = store or http_store(DEFAULT_COLLECTION)
    effective_config = config or get_controller_config()

    lookups: list[LocalMirror] = []
    if clusters is not None:
        cluster_names = tuple(clusters)
        log.info("Splitting over fixed clusters: %s", ",".join(cluster_names))
        source = static_clusters(cluster_names)
    else:
        cluster_mirror = LocalMirror(
            cluster_store or http_store(CLUSTERS_COLLECTION),
            resync_period=0,
            relist_backoff=effective_config.relist_backoff_seconds,
            name=f"{CONTROLLER_NAME}-clusters",
            publish=False,
        )
        lookups.append(cluster_mirror)
        log.info("Splitting over clusters watched in %r", CLUSTERS_COLLECTION)
        source = mirror_clusters(cluster_mirror)

    log.info(
        "Building splitter controller: workers=%s, max_retries=%s",
        effective_config.workers,
        effective_config.max_retries,
    )
    return Controller(
        effective_store,
        DeploymentSplitter(store=effective_store, clusters=source),
        config=effective_config,
        lookups=lookups,
        reporter=reporter,
        name=CONTROLLER_NAME,
    )
