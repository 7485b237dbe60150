"""
Service dependencies.

Services get the request's session and the slice of settings they
need; repositories are built from the session inside each service.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.core.config import Settings, get_settings
from togglehub.repositories.feature import FeatureToggleRepository
from togglehub.services.addon import AddonService
from togglehub.services.api_token import ApiTokenService
from togglehub.services.client_metrics import ClientMetricsService
from togglehub.services.event import EventService
from togglehub.services.feature_toggle import FeatureToggleService
from togglehub.services.project import ProjectService
from togglehub.services.toggle_filter import ToggleFilterService

from .database import get_db


async def get_api_token_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ApiTokenService:
    return ApiTokenService(db, settings.auth)


async def get_toggle_filter_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ToggleFilterService:
    return ToggleFilterService(FeatureToggleRepository(db), settings.frontend)


async def get_client_metrics_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> ClientMetricsService:
    return ClientMetricsService(db, settings.metrics)


async def get_feature_toggle_service(db: AsyncSession = Depends(get_db)) -> FeatureToggleService:
    return FeatureToggleService(db)


async def get_project_service(db: AsyncSession = Depends(get_db)) -> ProjectService:
    return ProjectService(db)


async def get_event_service(db: AsyncSession = Depends(get_db)) -> EventService:
    return EventService(db)


async def get_addon_service(db: AsyncSession = Depends(get_db)) -> AddonService:
    return AddonService(db)
