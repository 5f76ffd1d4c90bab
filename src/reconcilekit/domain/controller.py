"""Level-triggered reconciliation controller.

The controller wires a ``LocalMirror`` to a ``RateLimitingQueue`` and runs a
pool of worker threads over it:

    store events -> mirror -> notification channel -> dispatcher -> queue
    queue.get() -> mirror snapshot -> reconcile -> status diff -> update_status

The queue guarantees a key is processed by one worker at a time. Failures are
retried through the queue's rate limiter up to ``max_retries`` times, after
which the error is reported and the key dropped until the next change event.
"""

from __future__ import annotations

import copy
import threading
from logging import getLogger
from queue import Empty
from typing import TYPE_CHECKING

from reconcilekit.config.controller import ControllerConfig

from .mirror import LocalMirror
from .model import EventType, ObjectKey
from .reporting import get_error_reporter
from .workqueue import RateLimitingQueue, default_controller_rate_limiter

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .ports.reconcile import Reconciler
    from .ports.store import RemoteStore
    from .reporting import ErrorReporter

log = getLogger(__name__)

_SYNC_POLL_SECONDS = 0.1
_WORKER_RESTART_SECONDS = 1.0
_FEEDER_JOIN_SECONDS = 5.0


class Controller:
    def __init__(
        self,
        store: RemoteStore,
        reconcile: Reconciler,
        *,
        config: ControllerConfig | None = None,
        queue: RateLimitingQueue[ObjectKey] | None = None,
        mirror: LocalMirror | None = None,
        lookups: Sequence[LocalMirror] = (),
        reporter: ErrorReporter | None = None,
        name: str = "controller",
    ) -> None:
        self.config = config or ControllerConfig()
        self.name = name
        self.store = store
        self.reconcile = reconcile
        self.queue: RateLimitingQueue[ObjectKey] = queue or RateLimitingQueue(
            default_controller_rate_limiter(
                base_delay=self.config.base_delay_seconds,
                max_delay=self.config.max_delay_seconds,
                qps=self.config.qps,
                burst=self.config.burst,
            ),
            name=name,
        )
        self.mirror = mirror or LocalMirror(
            store,
            resync_period=self.config.resync_period_seconds,
            relist_backoff=self.config.relist_backoff_seconds,
            name=name,
        )
        # mirrors the reconcile step reads from; they gate workers but never enqueue
        self.lookups = tuple(lookups)
        self.reporter = reporter or get_error_reporter()
        self._stop = threading.Event()

    def start(self, workers: int | None = None) -> None:
        """Run the controller until ``stop`` is called.

        Workers are only started once the mirror and every lookup mirror have
        applied their initial listing, so objects that already exist are
        never mistaken for absent.
        """

        count = workers if workers is not None else self.config.workers
        if count < 1:
            raise ValueError("Controller needs at least one worker")

        mirrors = (self.mirror, *self.lookups)
        feeders = [
            threading.Thread(target=mirror.run, name=f"{self.name}-mirror-{index}", daemon=True)
            for index, mirror in enumerate(mirrors)
        ]
        for feeder in feeders:
            feeder.start()
        dispatcher = threading.Thread(
            target=self._dispatch_loop, name=f"{self.name}-dispatcher", daemon=True
        )

        threads: list[threading.Thread] = []
        try:
            log.info("Waiting for %d mirror(s) of %r to sync", len(mirrors), self.name)
            for mirror in mirrors:
                while not mirror.wait_for_sync(_SYNC_POLL_SECONDS):
                    if self._stop.is_set():
                        log.info("Stop requested before %r finished syncing", self.name)
                        return
            dispatcher.start()

            log.info("Starting %d worker(s) for %r", count, self.name)
            for index in range(count):
                thread = threading.Thread(
                    target=self._run_worker, name=f"{self.name}-worker-{index}", daemon=True
                )
                thread.start()
                threads.append(thread)

            self._stop.wait()
            log.info("Stopping workers for %r", self.name)
        finally:
            self._stop.set()
            self.queue.shutdown_with_drain()
            for thread in threads:
                thread.join()
            for mirror in mirrors:
                mirror.stop()
            for feeder in feeders:
                feeder.join(_FEEDER_JOIN_SECONDS)
                if feeder.is_alive():
                    log.warning(
                        "Mirror feeder %s did not exit within %ss",
                        feeder.name,
                        _FEEDER_JOIN_SECONDS,
                    )
            if dispatcher.is_alive():
                dispatcher.join()
            log.info("Controller %r stopped", self.name)

    def stop(self) -> None:
        """Request a graceful shutdown; in-flight reconciles are allowed to finish."""

        self._stop.set()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def _dispatch_loop(self) -> None:
        while not self._stop.is_set():
            try:
                notification = self.mirror.notifications.get(timeout=_SYNC_POLL_SECONDS)
            except Empty:
                continue
            if notification.type is EventType.DELETED:
                continue
            self.queue.add(notification.key)

    def _run_worker(self) -> None:
        while True:
            try:
                while self.process_next_work_item():
                    pass
            except Exception:
                log.exception("Worker loop of %r crashed; restarting", self.name)
                if not self._stop.wait(_WORKER_RESTART_SECONDS):
                    continue
            return

    def process_next_work_item(self) -> bool:
        """Handle one key from the queue. Returns ``False`` once the queue is shut down."""

        key = self.queue.get()
        if key is None:
            return False

        # release the key no matter what so other workers can pick it up again
        try:
            try:
                self.process(key)
            except Exception as exc:
                self.handle_error(exc, key)
            else:
                self.handle_error(None, key)
        finally:
            self.queue.done(key)
        return True

    def process(self, key: ObjectKey) -> None:
        """Reconcile one object and write its status back if it changed."""

        current = self.mirror.get(key)
        if current is None:
            log.info("Object with key %s was deleted", key)
            return

        previous_status = copy.deepcopy(current.status)
        self.reconcile(current)

        if current.status != previous_status:
            log.debug("Status of %s changed; updating", key)
            self.store.update_status(current)

    def handle_error(self, error: Exception | None, key: ObjectKey) -> None:
        if error is None:
            self.queue.forget(key)
            return

        requeues = self.queue.num_requeues(key)
        if requeues < self.config.max_retries:
            log.info("Error reconciling key %s, retrying... (#%d): %s", key, requeues, error)
            self.queue.add_rate_limited(key)
            return

        self.queue.forget(key)
        self.reporter.report(error, key=key)
        log.warning("Dropping key %s after %d failed retries: %s", key, requeues, error)
