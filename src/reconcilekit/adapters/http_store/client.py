"""HTTP client for a JSON object store with list/watch semantics."""

from __future__ import annotations

import json
import math
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ValidationError

from reconcilekit.adapters.http_resilience import ResilientClient
from reconcilekit.config.store import StoreConfig, get_store_config
from reconcilekit.domain.errors import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    ResourceExpiredError,
    StoreError,
)
from reconcilekit.domain.model import ListResult, Resource, WatchEvent

from .schema import ListPayload, ObjectPayload, StatusPayload, WatchErrorPayload, WatchEventPayload
from .translator import event_from_payload, payload_from_resource, resource_from_payload

if TYPE_CHECKING:
    from reconcilekit.config.http_resilience import ResilienceConfig
    from reconcilekit.domain.model import ObjectKey
    from reconcilekit.domain.ports.store import RemoteStore

log = getLogger(__name__)

DEFAULT_COLLECTION = "objects"
HTTP_GONE = 410


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _error_message(response: httpx.Response) -> str:
    try:
        status = StatusPayload.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text or response.reason_phrase
    return status.message or status.reason or response.reason_phrase


def _raise_for_status(response: httpx.Response, *, key: ObjectKey | None = None) -> None:
    if response.is_success:
        return
    message = _error_message(response)
    code = response.status_code
    if code == httpx.codes.NOT_FOUND:
        raise NotFoundError(message, key=key)
    if code == httpx.codes.CONFLICT:
        if response.request.method == "POST":
            raise AlreadyExistsError(message, key=key)
        raise ConflictError(message, key=key)
    if code == HTTP_GONE:
        raise ResourceExpiredError(message)
    raise StoreError(f"Object store returned {code}: {message}")


def _decode[M: BaseModel](response: httpx.Response, model: type[M]) -> M:
    try:
        return model.model_validate(response.json())
    except (ValueError, ValidationError) as exc:
        request = response.request
        raise StoreError(
            f"Invalid response to {request.method} {request.url.path}: {exc}"
        ) from exc


class HttpWatch:
    """Newline-delimited JSON change feed read from a streaming response.

    The server is asked to end the stream after ``timeout_seconds`` and reads
    give up after the same interval, so an idle or closed watch always ends
    and the caller reopens it from its last version.
    """

    def __init__(
        self,
        client: ResilientClient,
        path: str,
        resource_version: str,
        *,
        timeout_seconds: float,
    ) -> None:
        self._client = client
        self._path = path
        self._resource_version = resource_version
        self._timeout_seconds = timeout_seconds
        self._lock = threading.Lock()
        self._response: httpx.Response | None = None
        self._closed = False

    def __iter__(self) -> Iterator[WatchEvent]:
        params = {
            "watch": "true",
            "resourceVersion": self._resource_version,
            "timeoutSeconds": str(max(1, math.ceil(self._timeout_seconds))),
        }
        try:
            with self._client.stream(
                "GET", self._path, params=params, read_timeout=self._timeout_seconds
            ) as response:
                with self._lock:
                    if self._closed:
                        return
                    self._response = response
                if not response.is_success:
                    response.read()
                    _raise_for_status(response)
                for line in response.iter_lines():
                    if self._closed:
                        return
                    if not line.strip():
                        continue
                    yield _parse_watch_line(line)
        except httpx.ReadTimeout:
            log.debug("Watch on %s idle for %ss; ending stream", self._path, self._timeout_seconds)
        except (httpx.HTTPError, httpx.StreamError) as exc:
            if self._closed:
                return
            raise StoreError(f"Watch stream failed: {exc}") from exc
        finally:
            with self._lock:
                self._response = None

    def close(self) -> None:
        with self._lock:
            self._closed = True
            response = self._response
        if response is not None:
            response.close()


def _parse_watch_line(line: str) -> WatchEvent:
    try:
        raw = json.loads(line)
    except json.JSONDecodeError as exc:
        raise StoreError(f"Malformed watch event: {line[:200]!r}") from exc

    if isinstance(raw, dict) and raw.get("type") == "ERROR":
        error = WatchErrorPayload.model_validate(raw).object
        message = error.message or error.reason or "watch error"
        if error.code == HTTP_GONE:
            raise ResourceExpiredError(message)
        raise StoreError(f"Watch error {error.code}: {message}")

    try:
        return event_from_payload(WatchEventPayload.model_validate(raw))
    except ValidationError as exc:
        raise StoreError(f"Invalid watch event: {exc}") from exc


@dataclass(slots=True)
class HttpObjectStore:
    """``RemoteStore`` over one collection (``/{collection}``) of the object store."""

    config: StoreConfig = field(default_factory=get_store_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    collection: str = DEFAULT_COLLECTION
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    @property
    def client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    @property
    def path(self) -> str:
        return f"/{self.collection}"

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def list(self) -> ListResult:
        payload = _decode(self._send("GET", self.path), ListPayload)
        return ListResult(
            items=[resource_from_payload(item) for item in payload.items],
            resource_version=payload.resource_version,
        )

    def watch(self, resource_version: str) -> HttpWatch:
        return HttpWatch(
            self.client,
            self.path,
            resource_version,
            timeout_seconds=self.config.watch_timeout_seconds,
        )

    def get(self, key: ObjectKey) -> Resource:
        response = self._send("GET", self._object_path(key), key=key)
        return resource_from_payload(_decode(response, ObjectPayload))

    def update_status(self, obj: Resource) -> Resource:
        key = obj.key
        response = self._send(
            "PUT", f"{self._object_path(key)}/status", key=key, json=payload_from_resource(obj)
        )
        return resource_from_payload(_decode(response, ObjectPayload))

    def create(self, obj: Resource) -> Resource:
        response = self._send("POST", self.path, key=obj.key, json=payload_from_resource(obj))
        return resource_from_payload(_decode(response, ObjectPayload))

    def _object_path(self, key: ObjectKey) -> str:
        namespace = key.namespace or "-"
        return f"{self.path}/{namespace}/{key.name}"

    def _send(
        self,
        method: str,
        path: str,
        *,
        key: ObjectKey | None = None,
        json: object | None = None,
    ) -> httpx.Response:
        try:
            if json is None:
                response = self.client.request(method, path)
            else:
                response = self.client.request(method, path, json=json)
        except httpx.HTTPError as exc:
            log.warning("%s %s failed: %s", method, path, exc)
            raise StoreError(f"{method} {path} failed: {exc}") from exc
        _raise_for_status(response, key=key)
        return response


if TYPE_CHECKING:
    _store_check: RemoteStore = HttpObjectStore()
