"""
Client API routes.

Full toggle definitions for server-side SDKs, which evaluate locally,
plus registration and metrics. Accepts client tokens and admin tokens.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from togglehub.api.dependencies.auth import ClientToken
from togglehub.api.dependencies.services import (
    get_client_metrics_service,
    get_toggle_filter_service,
)
from togglehub.schemas.client_metrics import ClientMetrics, ClientRegistration
from togglehub.schemas.feature import ClientFeaturesResponse
from togglehub.services.api_token import TokenScope
from togglehub.services.client_metrics import ClientMetricsService
from togglehub.services.toggle_filter import ToggleFilterService

router = APIRouter()


@router.get("/features", response_model=ClientFeaturesResponse)
async def get_client_features(
    token: ClientToken,
    toggle_filter: ToggleFilterService = Depends(get_toggle_filter_service),
):
    features = await toggle_filter.client_features(TokenScope.from_token(token))
    return ClientFeaturesResponse(features=features)


@router.post(
    "/register",
    response_class=PlainTextResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def register_client(
    data: ClientRegistration,
    token: ClientToken,
    metrics_service: ClientMetricsService = Depends(get_client_metrics_service),
):
    environment = TokenScope.from_token(token).resolve_environment(data.environment)
    await metrics_service.register(data, environment)
    return PlainTextResponse("OK", status_code=status.HTTP_202_ACCEPTED)


@router.post(
    "/metrics",
    response_class=PlainTextResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def post_client_metrics(
    data: ClientMetrics,
    token: ClientToken,
    metrics_service: ClientMetricsService = Depends(get_client_metrics_service),
):
    environment = TokenScope.from_token(token).resolve_environment(data.environment)
    await metrics_service.ingest(data, environment)
    return PlainTextResponse("OK", status_code=status.HTTP_202_ACCEPTED)
