"""Pydantic models describing the object store's JSON payloads."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StoreBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MetadataPayload(StoreBaseModel):
    name: str
    namespace: str = ""
    resource_version: str = Field(default="", alias="resourceVersion")
    labels: dict[str, str] = Field(default_factory=dict)

    @field_validator("namespace", "resource_version", mode="before")
    @classmethod
    def _none_to_blank(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("resource_version", mode="before")
    @classmethod
    def _stringify_version(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("labels", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return {} if value is None else value


class ObjectPayload(StoreBaseModel):
    metadata: MetadataPayload
    spec: dict[str, Any] = Field(default_factory=dict)
    status: dict[str, Any] = Field(default_factory=dict)

    @field_validator("spec", "status", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return {} if value is None else value


class ListPayload(StoreBaseModel):
    items: list[ObjectPayload]
    resource_version: str = Field(alias="resourceVersion")

    @field_validator("resource_version", mode="before")
    @classmethod
    def _stringify_version(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return value


class StatusPayload(StoreBaseModel):
    """Error body returned by the store, also embedded in ERROR watch events."""

    code: int | None = None
    reason: str | None = None
    message: str | None = None


class WatchEventPayload(StoreBaseModel):
    type: Literal["ADDED", "MODIFIED", "DELETED"]
    object: ObjectPayload


class WatchErrorPayload(StoreBaseModel):
    type: Literal["ERROR"]
    object: StatusPayload
