"""
Repository pattern for data access.
"""

from togglehub.repositories.base import BaseRepository
from togglehub.repositories.api_token import ApiTokenRepository
from togglehub.repositories.project import ProjectRepository, EnvironmentRepository
from togglehub.repositories.feature import FeatureToggleRepository
from togglehub.repositories.client_metrics import (
    ClientMetricsRepository,
    SeenApplicationRepository,
    ClientApplicationRepository,
    ClientInstanceRepository,
    HourlyUsage,
)
from togglehub.repositories.event import EventRepository, AddonRepository

__all__ = [
    "BaseRepository",
    "ApiTokenRepository",
    "ProjectRepository",
    "EnvironmentRepository",
    "FeatureToggleRepository",
    "ClientMetricsRepository",
    "SeenApplicationRepository",
    "ClientApplicationRepository",
    "ClientInstanceRepository",
    "HourlyUsage",
    "EventRepository",
    "AddonRepository",
]
