"""
Feature toggle admin routes.
"""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, status
from pydantic import ValidationError

from togglehub.api.dependencies.auth import AdminToken
from togglehub.api.dependencies.services import get_feature_toggle_service
from togglehub.core.errors import BadRequestError
from togglehub.schemas.feature import (
    FeatureCreate,
    FeatureListResponse,
    FeatureResponse,
    StrategyCreate,
    StrategyResponse,
    VariantSchema,
    strategy_adapter,
)
from togglehub.services.feature_toggle import FeatureToggleService, feature_view, strategy_view

router = APIRouter()

FEATURE_PATH = "/projects/{project}/features/{name}"


def parse_strategy(body: dict[str, Any]) -> StrategyCreate:
    """Validate a strategy body against the schema for its name."""
    try:
        return strategy_adapter.validate_python(body)
    except ValidationError as e:
        raise BadRequestError(
            "Invalid strategy",
            details=e.errors(include_url=False, include_context=False, include_input=False),
        )


@router.get("/features", response_model=FeatureListResponse)
async def list_all_features(
    _: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    """All toggles across projects, in creation order."""
    toggles = await feature_service.list_all()
    return FeatureListResponse(features=[feature_view(t) for t in toggles])


@router.get("/projects/{project}/features", response_model=FeatureListResponse)
async def list_project_features(
    project: str,
    _: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    toggles = await feature_service.list_in_project(project)
    return FeatureListResponse(features=[feature_view(t) for t in toggles])


@router.post(
    "/projects/{project}/features",
    response_model=FeatureResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_feature(
    project: str,
    data: FeatureCreate,
    token: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    toggle = await feature_service.create(project, data, created_by=token.token_name)
    return feature_view(toggle)


@router.get(FEATURE_PATH, response_model=FeatureResponse)
async def get_feature(
    project: str,
    name: str,
    _: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    return feature_view(await feature_service.get(project, name))


@router.delete(FEATURE_PATH, status_code=status.HTTP_204_NO_CONTENT)
async def delete_feature(
    project: str,
    name: str,
    token: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    await feature_service.delete(project, name, deleted_by=token.token_name)


# ============================================================
# ENVIRONMENTS
# ============================================================

@router.post(FEATURE_PATH + "/environments/{environment}/on", response_model=FeatureResponse)
async def enable_feature(
    project: str,
    name: str,
    environment: str,
    token: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    toggle = await feature_service.set_enabled(
        project, name, environment, True, changed_by=token.token_name
    )
    return feature_view(toggle)


@router.post(FEATURE_PATH + "/environments/{environment}/off", response_model=FeatureResponse)
async def disable_feature(
    project: str,
    name: str,
    environment: str,
    token: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    toggle = await feature_service.set_enabled(
        project, name, environment, False, changed_by=token.token_name
    )
    return feature_view(toggle)


# ============================================================
# STRATEGIES
# ============================================================

@router.post(
    FEATURE_PATH + "/environments/{environment}/strategies",
    response_model=StrategyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_strategy(
    project: str,
    name: str,
    environment: str,
    token: AdminToken,
    body: dict[str, Any] = Body(...),
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    """
    Add a strategy to a toggle in one environment.

    Built-in strategies (default, flexibleRollout, userWithId,
    remoteAddress, applicationHostname) have typed parameters; any
    other name is stored with free-form string parameters.
    """
    strategy = await feature_service.add_strategy(
        project,
        name,
        environment,
        parse_strategy(body),
        created_by=token.token_name,
    )
    return strategy_view(strategy)


@router.delete(
    FEATURE_PATH + "/environments/{environment}/strategies/{strategy_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_strategy(
    project: str,
    name: str,
    environment: str,
    strategy_id: UUID,
    token: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    await feature_service.remove_strategy(
        project, name, environment, strategy_id, removed_by=token.token_name
    )


# ============================================================
# VARIANTS
# ============================================================

@router.put(FEATURE_PATH + "/variants", response_model=FeatureResponse)
async def set_variants(
    project: str,
    name: str,
    variants: list[VariantSchema],
    token: AdminToken,
    feature_service: FeatureToggleService = Depends(get_feature_toggle_service),
):
    """Replace all variants of a toggle."""
    toggle = await feature_service.set_variants(
        project, name, variants, changed_by=token.token_name
    )
    return feature_view(toggle)
