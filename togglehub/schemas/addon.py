"""Addon and event schemas."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import Field, HttpUrl

from .base import CamelModel


class WebhookParameters(CamelModel):
    """Webhook addon parameters."""
    url: HttpUrl
    body_template: str | None = None
    content_type: str | None = None
    authorization: str | None = None
    # JSON object as a string, e.g. '{"X-Team": "growth"}'
    custom_headers: str | None = None


class AddonCreate(CamelModel):
    provider: Literal["webhook"]
    description: str | None = None
    enabled: bool = True
    parameters: WebhookParameters
    events: list[str] = Field(..., min_length=1)


class AddonResponse(CamelModel):
    id: UUID
    provider: str
    description: str | None = None
    enabled: bool
    parameters: dict[str, Any]
    events: list[str]
    created_at: datetime


class AddonListResponse(CamelModel):
    addons: list[AddonResponse]


class EventResponse(CamelModel):
    id: int
    type: str
    created_by: str
    created_at: datetime
    project: str | None = None
    feature_name: str | None = None
    environment: str | None = None
    data: dict[str, Any] | None = None
    pre_data: dict[str, Any] | None = None


class EventListResponse(CamelModel):
    version: int = 1
    events: list[EventResponse]
