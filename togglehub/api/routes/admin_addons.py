"""
Addon and event admin routes.
"""

from uuid import UUID
from fastapi import APIRouter, Depends, Query, status

from togglehub.api.dependencies.auth import AdminToken
from togglehub.api.dependencies.services import get_addon_service, get_event_service
from togglehub.schemas.addon import (
    AddonCreate,
    AddonListResponse,
    AddonResponse,
    EventListResponse,
    EventResponse,
)
from togglehub.services.addon import AddonService
from togglehub.services.event import EventService

router = APIRouter()


@router.get("/addons", response_model=AddonListResponse)
async def list_addons(
    _: AdminToken,
    addon_service: AddonService = Depends(get_addon_service),
):
    addons = await addon_service.list_all()
    return AddonListResponse(addons=[AddonResponse.model_validate(a) for a in addons])


@router.post("/addons", response_model=AddonResponse, status_code=status.HTTP_201_CREATED)
async def create_addon(
    data: AddonCreate,
    token: AdminToken,
    addon_service: AddonService = Depends(get_addon_service),
):
    """Configure an addon subscribed to one or more event types."""
    addon = await addon_service.create(data, created_by=token.token_name)
    return AddonResponse.model_validate(addon)


@router.delete("/addons/{addon_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_addon(
    addon_id: UUID,
    token: AdminToken,
    addon_service: AddonService = Depends(get_addon_service),
):
    await addon_service.delete(addon_id, deleted_by=token.token_name)


@router.get("/events", response_model=EventListResponse)
async def list_events(
    _: AdminToken,
    feature: str | None = Query(None, description="Only events for this toggle"),
    project: str | None = None,
    limit: int = Query(100, ge=1, le=1000),
    event_service: EventService = Depends(get_event_service),
):
    """Most recent events first."""
    events = await event_service.recent(limit=limit, feature_name=feature, project=project)
    return EventListResponse(events=[EventResponse.model_validate(e) for e in events])
