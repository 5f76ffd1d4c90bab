"""Remote object store connection values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, optional_env_var, require_env_vars
from .http_resilience import ResilienceConfig, RetryPolicy

STORE_TIMEOUT_SECONDS = 15.0
# stays below the controller's 5s feeder join so a stopped watch is noticed in time
DEFAULT_WATCH_TIMEOUT_SECONDS = 4.0


@dataclass(frozen=True, slots=True)
class StoreConfig:
    """Holds the HTTP object store endpoint and client resilience settings."""

    resilience: ResilienceConfig
    token: str | None = None
    watch_timeout_seconds: float = DEFAULT_WATCH_TIMEOUT_SECONDS

    @property
    def base_url(self) -> str | None:
        return self.resilience.base_url


def get_store_config(
    *,
    base_url: str | None = None,
    resilience: ResilienceConfig | None = None,
) -> StoreConfig:
    url = base_url or require_env_vars(("RECONCILEKIT_STORE_URL",))["RECONCILEKIT_STORE_URL"]
    token = optional_env_var("RECONCILEKIT_STORE_TOKEN")
    headers = {"Accept": "application/json"}
    if token is not None:
        headers["Authorization"] = f"Bearer {token}"
    return StoreConfig(
        token=token,
        watch_timeout_seconds=env_float(
            "RECONCILEKIT_WATCH_TIMEOUT_SECONDS", DEFAULT_WATCH_TIMEOUT_SECONDS, above=0.0
        ),
        resilience=resilience
        or ResilienceConfig(
            name="object-store",
            base_url=url.rstrip("/"),
            timeout_seconds=STORE_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=4),
            default_headers=headers,
        ),
    )
