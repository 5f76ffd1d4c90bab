"""Controller runtime configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int

DEFAULT_WORKERS = 2
DEFAULT_MAX_RETRIES = 5
DEFAULT_BASE_DELAY_SECONDS = 0.005
DEFAULT_MAX_DELAY_SECONDS = 1000.0
DEFAULT_QPS = 10.0
DEFAULT_BURST = 100
DEFAULT_RESYNC_PERIOD_SECONDS = 10 * 60 * 60.0
DEFAULT_RELIST_BACKOFF_SECONDS = 1.0


@dataclass(frozen=True, slots=True)
class ControllerConfig:
    """Tuning knobs for the worker pool, retry policy and local mirror."""

    workers: int = DEFAULT_WORKERS
    max_retries: int = DEFAULT_MAX_RETRIES
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS
    max_delay_seconds: float = DEFAULT_MAX_DELAY_SECONDS
    qps: float = DEFAULT_QPS
    burst: int = DEFAULT_BURST
    resync_period_seconds: float = DEFAULT_RESYNC_PERIOD_SECONDS
    relist_backoff_seconds: float = DEFAULT_RELIST_BACKOFF_SECONDS


def get_controller_config() -> ControllerConfig:
    return ControllerConfig(
        workers=env_int("RECONCILEKIT_WORKERS", DEFAULT_WORKERS, minimum=1),
        max_retries=env_int("RECONCILEKIT_MAX_RETRIES", DEFAULT_MAX_RETRIES, minimum=0),
        base_delay_seconds=env_float(
            "RECONCILEKIT_BASE_DELAY_SECONDS", DEFAULT_BASE_DELAY_SECONDS, minimum=0.0
        ),
        max_delay_seconds=env_float(
            "RECONCILEKIT_MAX_DELAY_SECONDS", DEFAULT_MAX_DELAY_SECONDS, minimum=0.0
        ),
        qps=env_float("RECONCILEKIT_QPS", DEFAULT_QPS, minimum=0.0),
        burst=env_int("RECONCILEKIT_BURST", DEFAULT_BURST, minimum=1),
        resync_period_seconds=env_float(
            "RECONCILEKIT_RESYNC_SECONDS", DEFAULT_RESYNC_PERIOD_SECONDS, minimum=0.0
        ),
        relist_backoff_seconds=env_float(
            "RECONCILEKIT_RELIST_BACKOFF_SECONDS", DEFAULT_RELIST_BACKOFF_SECONDS, above=0.0
        ),
    )
