"""Retry delay policies for the rate-limiting queue.

Every limiter answers three questions about a key: how long to wait before
the next attempt (``when``, which also counts the attempt), how many attempts
have been counted since the last success (``num_requeues``), and how to reset
that count (``forget``).
"""

from __future__ import annotations

import threading
import time
from collections.abc import Hashable
from typing import Protocol, runtime_checkable


@runtime_checkable
class RateLimiter[K: Hashable](Protocol):
    def when(self, key: K) -> float: ...

    def forget(self, key: K) -> None: ...

    def num_requeues(self, key: K) -> int: ...


class ItemExponentialFailureRateLimiter[K: Hashable]:
    """Per-key exponential backoff: ``base_delay * 2**failures``, capped."""

    def __init__(self, base_delay: float, max_delay: float) -> None:
        if base_delay < 0 or max_delay < 0:
            raise ValueError("Backoff delays must be non-negative")
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._lock = threading.Lock()
        self._failures: dict[K, int] = {}

    def when(self, key: K) -> float:
        with self._lock:
            exponent = self._failures.get(key, 0)
            self._failures[key] = exponent + 1

        # 2**exponent overflows float range long before the cap matters
        if exponent >= 64:
            return self.max_delay
        return min(self.base_delay * (2**exponent), self.max_delay)

    def forget(self, key: K) -> None:
        with self._lock:
            self._failures.pop(key, None)

    def num_requeues(self, key: K) -> int:
        with self._lock:
            return self._failures.get(key, 0)


class BucketRateLimiter[K: Hashable]:
    """Global token bucket shared by all keys.

    Tokens refill at ``qps`` per second up to ``burst``. Each ``when`` call
    reserves one token; once the bucket is empty the returned delay is the
    time until the reserved token becomes available.
    """

    def __init__(self, qps: float, burst: int) -> None:
        if burst < 1:
            raise ValueError("Bucket burst must be at least 1")
        self.qps = qps
        self.burst = burst
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._last = time.monotonic()

    def when(self, key: K) -> float:  # noqa: ARG002
        with self._lock:
            if self.qps <= 0:
                return 0.0
            now = time.monotonic()
            elapsed = max(0.0, now - self._last)
            self._last = now
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.qps)
            self._tokens -= 1.0
            if self._tokens >= 0:
                return 0.0
            return -self._tokens / self.qps

    def forget(self, key: K) -> None:
        pass

    def num_requeues(self, key: K) -> int:  # noqa: ARG002
        return 0


class MaxOfRateLimiter[K: Hashable]:
    """Delays by the longest delay any of the wrapped limiters asks for."""

    def __init__(self, *limiters: RateLimiter[K]) -> None:
        if not limiters:
            raise ValueError("MaxOfRateLimiter requires at least one limiter")
        self.limiters = limiters

    def when(self, key: K) -> float:
        return max(limiter.when(key) for limiter in self.limiters)

    def forget(self, key: K) -> None:
        for limiter in self.limiters:
            limiter.forget(key)

    def num_requeues(self, key: K) -> int:
        return max(limiter.num_requeues(key) for limiter in self.limiters)


def default_controller_rate_limiter[K: Hashable](
    *,
    base_delay: float = 0.005,
    max_delay: float = 1000.0,
    qps: float = 10.0,
    burst: int = 100,
) -> RateLimiter[K]:
    """Per-key exponential backoff combined with an overall token bucket."""

    return MaxOfRateLimiter[K](
        ItemExponentialFailureRateLimiter[K](base_delay, max_delay),
        BucketRateLimiter[K](qps, burst),
    )
