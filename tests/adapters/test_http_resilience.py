from __future__ import annotations

import httpx

from reconcilekit.adapters.http_resilience import ResilientClient, build_retry
from reconcilekit.config import ResilienceConfig, RetryPolicy


def test_build_retry_copies_policy() -> None:
    retry = build_retry(RetryPolicy(total=2, backoff_factor=0.1, max_backoff_wait=3.0))

    assert retry.total == 2
    assert retry.backoff_factor == 0.1
    assert retry.max_backoff_wait == 3.0


def test_stream_uses_its_own_read_timeout() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.extensions["timeout"])
        return httpx.Response(200, content=b"line\n")

    client = ResilientClient(ResilienceConfig(name="test", connect_timeout_seconds=2.0))
    client._client = httpx.Client(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        base_url="http://example.test", transport=httpx.MockTransport(handler)
    )

    with client, client.stream("GET", "/stream", read_timeout=4.0) as response:
        lines = list(response.iter_lines())

    assert lines == ["line"]
    assert seen["read"] == 4.0
    assert seen["connect"] == 2.0
