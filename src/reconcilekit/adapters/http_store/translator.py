"""Translate between wire payloads and domain resources."""

from __future__ import annotations

from reconcilekit.domain.model import EventType, ObjectMeta, Resource, WatchEvent

from .schema import MetadataPayload, ObjectPayload, WatchEventPayload


def resource_from_payload(payload: ObjectPayload) -> Resource:
    meta = payload.metadata
    return Resource(
        metadata=ObjectMeta(
            name=meta.name,
            namespace=meta.namespace,
            resource_version=meta.resource_version,
            labels=dict(meta.labels),
        ),
        spec=payload.spec,
        status=payload.status,
    )


def payload_from_resource(obj: Resource) -> dict[str, object]:
    payload = ObjectPayload(
        metadata=MetadataPayload(
            name=obj.metadata.name,
            namespace=obj.metadata.namespace,
            resource_version=obj.metadata.resource_version,
            labels=dict(obj.metadata.labels),
        ),
        spec=obj.spec,
        status=obj.status,
    )
    return payload.model_dump(mode="json", by_alias=True)


def event_from_payload(payload: WatchEventPayload) -> WatchEvent:
    return WatchEvent(type=EventType(payload.type), object=resource_from_payload(payload.object))
