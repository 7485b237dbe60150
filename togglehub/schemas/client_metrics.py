"""Client registration and metrics schemas."""

from datetime import datetime

from pydantic import Field

from .base import CamelModel


class ClientRegistration(CamelModel):
    """Body of POST .../client/register."""
    app_name: str = Field(..., min_length=1, max_length=255)
    instance_id: str = Field(default="default", max_length=255)
    sdk_version: str | None = Field(default=None, max_length=255)
    environment: str | None = Field(default=None, max_length=100)
    interval: int = Field(..., ge=0)
    started: datetime
    strategies: list[str]
    description: str | None = None


class ToggleCounts(CamelModel):
    yes: int = Field(default=0, ge=0)
    no: int = Field(default=0, ge=0)
    variants: dict[str, int] = Field(default_factory=dict)


class MetricsBucket(CamelModel):
    start: datetime
    stop: datetime
    toggles: dict[str, ToggleCounts] = Field(default_factory=dict)


class ClientMetrics(CamelModel):
    """Body of POST .../client/metrics."""
    app_name: str = Field(..., min_length=1, max_length=255)
    instance_id: str | None = Field(default=None, max_length=255)
    environment: str | None = Field(default=None, max_length=100)
    bucket: MetricsBucket


class HourlyUsageResponse(CamelModel):
    environment: str
    timestamp: str
    yes: int
    no: int


class FeatureUsageResponse(CamelModel):
    version: int = 1
    maturity: str = "stable"
    feature_name: str
    last_hour_usage: list[HourlyUsageResponse]
    seen_applications: list[str]


class FeatureUsageRawResponse(CamelModel):
    version: int = 1
    maturity: str = "stable"
    feature_name: str
    hours_back: int
    data: list[HourlyUsageResponse]
