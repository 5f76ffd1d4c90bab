from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from httpx_retries import Retry, RetryTransport

from reconcilekit.config.http_resilience import ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestContent,
        TimeoutTypes,
        URLTypes,
    )


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class RequestOptions(TypedDict, total=False):
    content: RequestContent | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    timeout: TimeoutTypes | UseClientDefault


class ClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.BaseTransport


class ResilientClient:
    """Blocking httpx client with retries for transient failures.

    Worker threads share one instance; httpx clients are safe to use from
    several threads at once.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        retry_transport = RetryTransport(retry=build_retry(config.retry))

        client_kwargs: ClientOptions = {
            "timeout": httpx.Timeout(
                config.timeout_seconds, connect=config.connect_timeout_seconds
            ),
            "transport": retry_transport,
        }
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if config.default_headers:
            client_kwargs["headers"] = dict(config.default_headers)

        self._client = httpx.Client(**client_kwargs)

    def __enter__(self) -> ResilientClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return self._client.request(method, url, **kwargs)

    @contextmanager
    def stream(
        self,
        method: str,
        url: URLTypes,
        *,
        read_timeout: float,
        **kwargs: Unpack[RequestOptions],
    ) -> Iterator[httpx.Response]:
        """Open a long-lived response whose reads give up after ``read_timeout`` seconds.

        A blocked read is not woken by closing the response from another
        thread, so the read timeout bounds how long a close can go unnoticed.
        """

        kwargs["timeout"] = httpx.Timeout(
            self.config.timeout_seconds,
            connect=self.config.connect_timeout_seconds,
            read=read_timeout,
        )
        with self._client.stream(method, url, **kwargs) as response:
            yield response
