"""
API token schemas.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, AliasChoices, model_validator

from togglehub.models.api_token import ApiTokenType, ALL
from togglehub.models.project import DEFAULT_ENVIRONMENT

from .base import CamelModel


class ApiTokenCreate(CamelModel):
    """API token creation schema."""
    token_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("tokenName", "token_name", "username"),
    )
    type: ApiTokenType
    projects: list[str] | None = None
    project: str | None = None
    environment: str | None = None
    expires_at: datetime | None = None

    @model_validator(mode="after")
    def normalize_scope(self) -> "ApiTokenCreate":
        if self.projects is None:
            self.projects = [self.project] if self.project else None
        self.project = None

        if self.type == ApiTokenType.ADMIN:
            if (self.projects and self.projects != [ALL]) or self.environment not in (None, ALL):
                raise ValueError("Admin tokens are always scoped to all projects and environments")
            self.projects = [ALL]
            self.environment = ALL
            return self

        if self.environment == ALL:
            raise ValueError(f"{self.type.value} tokens must target a single environment")
        self.environment = self.environment or DEFAULT_ENVIRONMENT
        if not self.projects:
            self.projects = [ALL]
        if ALL in self.projects and len(self.projects) > 1:
            raise ValueError("A wildcard project cannot be combined with other projects")
        return self


class ApiTokenResponse(CamelModel):
    """API token response schema (without the secret)."""
    id: UUID
    secret_prefix: str
    token_name: str
    type: ApiTokenType
    projects: list[str]
    environment: str
    expires_at: datetime | None = None
    created_at: datetime
    seen_at: datetime | None = None


class ApiTokenCreatedResponse(ApiTokenResponse):
    """Response when a token is created (includes the secret once)."""
    secret: str


class ApiTokenListResponse(CamelModel):
    tokens: list[ApiTokenResponse]
