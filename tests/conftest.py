from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

import pytest

from reconcilekit.adapters.memory import InMemoryStore
from reconcilekit.config import ControllerConfig
from reconcilekit.domain.model import ObjectMeta, Resource

if TYPE_CHECKING:
    from reconcilekit.domain.controller import Controller
    from reconcilekit.domain.mirror import LocalMirror

type WaitFor = Callable[[Callable[[], bool]], bool]
type ResourceFactory = Callable[..., Resource]


def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def wait_for() -> WaitFor:
    return _wait_for


@pytest.fixture
def make_resource() -> ResourceFactory:
    def factory(
        name: str,
        *,
        namespace: str = "default",
        spec: dict[str, Any] | None = None,
        status: dict[str, Any] | None = None,
        labels: dict[str, str] | None = None,
    ) -> Resource:
        return Resource(
            metadata=ObjectMeta(name=name, namespace=namespace, labels=labels or {}),
            spec=spec or {},
            status=status or {},
        )

    return factory


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def fast_config() -> ControllerConfig:
    return ControllerConfig(
        workers=2,
        max_retries=5,
        base_delay_seconds=0.001,
        max_delay_seconds=0.01,
        qps=1000.0,
        burst=1000,
        resync_period_seconds=0,
        relist_backoff_seconds=0.01,
    )


@pytest.fixture
def run_controller() -> Iterator[Callable[..., Controller]]:
    running: list[tuple[Controller, threading.Thread]] = []

    def start(controller: Controller, workers: int = 2) -> Controller:
        thread = threading.Thread(target=controller.start, args=(workers,), daemon=True)
        thread.start()
        running.append((controller, thread))
        return controller

    yield start

    for controller, thread in running:
        controller.stop()
        thread.join(timeout=10)
        assert not thread.is_alive()


@pytest.fixture
def run_mirror() -> Iterator[Callable[[LocalMirror], LocalMirror]]:
    running: list[tuple[LocalMirror, threading.Thread]] = []

    def start(mirror: LocalMirror) -> LocalMirror:
        thread = threading.Thread(target=mirror.run, daemon=True)
        thread.start()
        running.append((mirror, thread))
        return mirror

    yield start

    for mirror, thread in running:
        mirror.stop()
        thread.join(timeout=10)
        assert not thread.is_alive()
