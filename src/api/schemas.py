"""API-facing Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CallOutRequest(ApiModel):
    device_id: str = Field(min_length=1)
    phone_number: str | None = None
    extension_number: str | None = None


class RegistryStatusResponse(ApiModel):
    ready: bool
    account_id: str | None = None
    extension_id: str | None = None
    session_count: int
    device_count: int


class NotificationAck(ApiModel):
    status: str = "accepted"
