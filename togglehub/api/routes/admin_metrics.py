"""
Client metrics admin routes.
"""

from fastapi import APIRouter, Depends, Query

from togglehub.api.dependencies.auth import AdminToken
from togglehub.api.dependencies.services import get_client_metrics_service
from togglehub.schemas.client_metrics import FeatureUsageRawResponse, FeatureUsageResponse
from togglehub.services.client_metrics import ClientMetricsService

router = APIRouter()


@router.get("/features/{feature_name}", response_model=FeatureUsageResponse)
async def get_feature_usage(
    feature_name: str,
    _: AdminToken,
    metrics_service: ClientMetricsService = Depends(get_client_metrics_service),
):
    """Last hour of usage per environment and the applications seen using the toggle."""
    return await metrics_service.feature_usage(feature_name)


@router.get("/features/{feature_name}/raw", response_model=FeatureUsageRawResponse)
async def get_feature_usage_raw(
    feature_name: str,
    _: AdminToken,
    hours_back: int = Query(1, alias="hoursBack"),
    metrics_service: ClientMetricsService = Depends(get_client_metrics_service),
):
    return await metrics_service.feature_usage_raw(feature_name, hours_back)
