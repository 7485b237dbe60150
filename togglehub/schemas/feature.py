"""
Feature toggle schemas.

Strategies are a tagged union on `name`. Built-in strategies get typed
parameters; any other name is a custom strategy with a free-form
string mapping, evaluated by SDKs that know it.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Union
from uuid import UUID

from pydantic import Discriminator, Field, Tag, TypeAdapter, field_validator

from .base import CamelModel
from .constraint import Constraint, dump_constraints


NAME_PATTERN = r"^[a-zA-Z0-9_.~-]+$"

BUILTIN_STRATEGIES = frozenset(
    {"default", "flexibleRollout", "userWithId", "remoteAddress", "applicationHostname"}
)


# ============================================================
# STRATEGIES
# ============================================================

class StrategyBase(CamelModel):
    constraints: list[Constraint] = Field(default_factory=list)

    def parameters_dict(self) -> dict[str, Any]:
        parameters = getattr(self, "parameters", None)
        if parameters is None:
            return {}
        if isinstance(parameters, dict):
            return dict(parameters)
        return parameters.model_dump(by_alias=True, mode="json")

    def constraints_dict(self) -> list[dict]:
        return dump_constraints(self.constraints)


class DefaultStrategy(StrategyBase):
    name: Literal["default"]
    parameters: dict[str, str] = Field(default_factory=dict)


class FlexibleRolloutParameters(CamelModel):
    rollout: int = Field(default=100, ge=0, le=100)
    stickiness: str = "default"
    group_id: str = ""


class FlexibleRolloutStrategy(StrategyBase):
    name: Literal["flexibleRollout"]
    parameters: FlexibleRolloutParameters = Field(default_factory=FlexibleRolloutParameters)


class UserWithIdParameters(CamelModel):
    user_ids: str = Field(..., description="Comma separated user ids")


class UserWithIdStrategy(StrategyBase):
    name: Literal["userWithId"]
    parameters: UserWithIdParameters


class RemoteAddressParameters(CamelModel):
    ips: str = Field(..., alias="IPs", description="Comma separated IPs or CIDR ranges")


class RemoteAddressStrategy(StrategyBase):
    name: Literal["remoteAddress"]
    parameters: RemoteAddressParameters


class ApplicationHostnameParameters(CamelModel):
    host_names: str = Field(..., description="Comma separated host names")


class ApplicationHostnameStrategy(StrategyBase):
    name: Literal["applicationHostname"]
    parameters: ApplicationHostnameParameters


class CustomStrategy(StrategyBase):
    name: str = Field(..., min_length=1, max_length=255)
    parameters: dict[str, str] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def stringify_parameters(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {k: str(value) for k, value in v.items()}
        return v


def _strategy_tag(value: Any) -> str:
    name = value.get("name") if isinstance(value, dict) else getattr(value, "name", None)
    return name if name in BUILTIN_STRATEGIES else "custom"


StrategyCreate = Annotated[
    Union[
        Annotated[DefaultStrategy, Tag("default")],
        Annotated[FlexibleRolloutStrategy, Tag("flexibleRollout")],
        Annotated[UserWithIdStrategy, Tag("userWithId")],
        Annotated[RemoteAddressStrategy, Tag("remoteAddress")],
        Annotated[ApplicationHostnameStrategy, Tag("applicationHostname")],
        Annotated[CustomStrategy, Tag("custom")],
    ],
    Discriminator(_strategy_tag),
]

strategy_adapter = TypeAdapter(StrategyCreate)


class StrategyResponse(CamelModel):
    id: UUID
    name: str
    constraints: list[dict] = Field(default_factory=list)
    parameters: dict[str, Any] = Field(default_factory=dict)
    sort_order: int = 0


# ============================================================
# VARIANTS
# ============================================================

class VariantPayload(CamelModel):
    type: Literal["string", "json", "csv", "number"]
    value: str


class VariantSchema(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    weight: int = Field(default=0, ge=0, le=1000)
    stickiness: str = "default"
    payload: VariantPayload | None = None


# ============================================================
# TOGGLES
# ============================================================

class FeatureCreate(CamelModel):
    """Create a new feature toggle."""
    name: str = Field(..., min_length=1, max_length=255, pattern=NAME_PATTERN)
    description: str | None = None
    type: str = Field(default="release", max_length=50)
    impression_data: bool = False


class FeatureEnvironmentResponse(CamelModel):
    name: str
    enabled: bool
    strategies: list[StrategyResponse] = Field(default_factory=list)


class FeatureResponse(CamelModel):
    """Admin view of a toggle."""
    name: str
    project: str
    description: str | None = None
    type: str
    stale: bool
    impression_data: bool
    created_at: datetime
    environments: list[FeatureEnvironmentResponse] = Field(default_factory=list)
    variants: list[VariantSchema] = Field(default_factory=list)


class FeatureListResponse(CamelModel):
    version: int = 1
    features: list[FeatureResponse]


class ClientFeature(CamelModel):
    """Full toggle definition for server-side SDKs in one environment."""
    name: str
    type: str
    description: str | None = None
    project: str
    enabled: bool
    stale: bool
    impression_data: bool
    strategies: list[dict] = Field(default_factory=list)
    variants: list[VariantSchema] = Field(default_factory=list)


class ClientFeaturesResponse(CamelModel):
    version: int = 2
    features: list[ClientFeature]
