"""Project and environment schemas."""

from datetime import datetime

from pydantic import Field

from .base import CamelModel
from .feature import NAME_PATTERN


class ProjectCreate(CamelModel):
    id: str = Field(..., min_length=1, max_length=100, pattern=NAME_PATTERN)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None


class ProjectResponse(CamelModel):
    id: str
    name: str
    description: str | None = None
    created_at: datetime


class ProjectListResponse(CamelModel):
    version: int = 1
    projects: list[ProjectResponse]


class EnvironmentCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, pattern=NAME_PATTERN)
    type: str = Field(default="production", max_length=100)
    enabled: bool = True
    sort_order: int = 9999


class EnvironmentResponse(CamelModel):
    name: str
    type: str
    enabled: bool
    sort_order: int


class EnvironmentListResponse(CamelModel):
    version: int = 1
    environments: list[EnvironmentResponse]
