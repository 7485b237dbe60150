"""Frontend API schemas."""

from typing import Any

from pydantic import Field

from .base import CamelModel
from .feature import VariantPayload


class EvaluatedVariant(CamelModel):
    name: str
    enabled: bool
    payload: VariantPayload | None = None


DISABLED_VARIANT = EvaluatedVariant(name="disabled", enabled=False)


class FrontendToggle(CamelModel):
    name: str
    enabled: bool = True
    impression_data: bool = False
    variant: EvaluatedVariant = DISABLED_VARIANT


class FrontendTogglesResponse(CamelModel):
    toggles: list[FrontendToggle]


class EvaluationContext(CamelModel):
    """
    Context SDKs send as query parameters.

    Known keys map to fields; everything else lands in `properties`.
    """
    app_name: str | None = None
    environment: str | None = None
    user_id: str | None = None
    session_id: str | None = None
    remote_address: str | None = None
    current_time: str | None = None
    properties: dict[str, str] = Field(default_factory=dict)

    def get(self, context_name: str) -> Any:
        """Look up a context field by its wire name (e.g. "appName")."""
        for field_name, info in type(self).model_fields.items():
            if field_name == "properties":
                continue
            if context_name in (field_name, info.alias):
                return getattr(self, field_name)
        return self.properties.get(context_name)
