"""
Database models.
"""

from .base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    StandardMixin,
    JSONType,
)
from .api_token import ApiToken, ApiTokenType, ALL
from .project import Project, Environment, DEFAULT_PROJECT, DEFAULT_ENVIRONMENT
from .feature import FeatureToggle, FeatureEnvironment, FeatureStrategy
from .client_metrics import (
    ClientMetricsHourly,
    FeatureSeenApplication,
    ClientApplication,
    ClientInstance,
)
from .event import Event, EventType
from .addon import Addon

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "StandardMixin",
    "JSONType",
    # Models
    "ApiToken",
    "ApiTokenType",
    "ALL",
    "Project",
    "Environment",
    "DEFAULT_PROJECT",
    "DEFAULT_ENVIRONMENT",
    "FeatureToggle",
    "FeatureEnvironment",
    "FeatureStrategy",
    "ClientMetricsHourly",
    "FeatureSeenApplication",
    "ClientApplication",
    "ClientInstance",
    "Event",
    "EventType",
    "Addon",
]
