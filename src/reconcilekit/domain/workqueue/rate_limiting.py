"""Delaying queue with per-key retry accounting."""

from __future__ import annotations

from collections.abc import Hashable
from typing import TYPE_CHECKING

from .delaying import DelayingQueue
from .rate_limiters import default_controller_rate_limiter

if TYPE_CHECKING:
    from .rate_limiters import RateLimiter


class RateLimitingQueue[K: Hashable](DelayingQueue[K]):
    def __init__(self, rate_limiter: RateLimiter[K] | None = None, name: str = "") -> None:
        super().__init__(name)
        self.rate_limiter: RateLimiter[K] = rate_limiter or default_controller_rate_limiter()

    def add_rate_limited(self, key: K) -> None:
        """Re-add ``key`` once the rate limiter allows it; counts one requeue."""

        self.add_after(key, self.rate_limiter.when(key))

    def forget(self, key: K) -> None:
        """Stop tracking retries for ``key``; call on success or final give-up."""

        self.rate_limiter.forget(key)

    def num_requeues(self, key: K) -> int:
        return self.rate_limiter.num_requeues(key)
