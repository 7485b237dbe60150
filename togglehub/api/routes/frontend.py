"""
Frontend API routes.

Pre-evaluated toggles for browser and mobile SDKs. Accepts frontend
tokens and admin tokens.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from togglehub.api.dependencies.auth import FrontendToken
from togglehub.api.dependencies.services import (
    get_client_metrics_service,
    get_toggle_filter_service,
)
from togglehub.core.errors import MethodNotAllowedError
from togglehub.schemas.client_metrics import ClientMetrics, ClientRegistration
from togglehub.schemas.frontend import EvaluationContext, FrontendTogglesResponse
from togglehub.services.api_token import TokenScope
from togglehub.services.client_metrics import ClientMetricsService
from togglehub.services.toggle_filter import ToggleFilterService

router = APIRouter()

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def context_from_request(request: Request) -> EvaluationContext:
    """
    Build the evaluation context from query parameters.

    Known keys (appName, userId, ...) map to context fields,
    `properties[key]=value` and any other key become properties. The
    caller's address is used when remoteAddress is not given.
    """
    known = {}
    for name, info in EvaluationContext.model_fields.items():
        if name != "properties":
            known[name] = name
            known[info.alias] = name

    fields: dict[str, str] = {}
    properties: dict[str, str] = {}
    for key, value in request.query_params.multi_items():
        if key in known:
            fields[known[key]] = value
        elif key.startswith("properties[") and key.endswith("]"):
            properties[key[len("properties["):-1]] = value
        else:
            properties[key] = value

    if "remote_address" not in fields and request.client:
        fields["remote_address"] = request.client.host

    return EvaluationContext(**fields, properties=properties)


@router.get(
    "",
    response_model=FrontendTogglesResponse,
    response_model_exclude_none=True,
)
async def get_frontend_toggles(
    request: Request,
    token: FrontendToken,
    toggle_filter: ToggleFilterService = Depends(get_toggle_filter_service),
):
    """Enabled toggles visible to the token, evaluated against the query context."""
    toggles = await toggle_filter.frontend_toggles(
        TokenScope.from_token(token),
        context_from_request(request),
    )
    return FrontendTogglesResponse(toggles=toggles)


@router.post("/client/register", response_class=PlainTextResponse)
async def register_frontend_client(
    data: ClientRegistration,
    token: FrontendToken,
    metrics_service: ClientMetricsService = Depends(get_client_metrics_service),
):
    """Register a frontend SDK instance."""
    environment = TokenScope.from_token(token).resolve_environment(data.environment)
    await metrics_service.register(data, environment)
    return PlainTextResponse("OK")


@router.post("/client/metrics", response_class=PlainTextResponse)
async def post_frontend_metrics(
    data: ClientMetrics,
    token: FrontendToken,
    metrics_service: ClientMetricsService = Depends(get_client_metrics_service),
):
    """Ingest a metrics bucket from a frontend SDK."""
    environment = TokenScope.from_token(token).resolve_environment(data.environment)
    await metrics_service.ingest(data, environment)
    return PlainTextResponse("OK")


# ============================================================
# NOT SUPPORTED
# ============================================================

@router.post("", include_in_schema=False)
@router.api_route("/client/features", methods=ALL_METHODS, include_in_schema=False)
@router.api_route("/health", methods=ALL_METHODS, include_in_schema=False)
@router.api_route("/internal-backstage/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def not_supported(_: FrontendToken):
    raise MethodNotAllowedError()
