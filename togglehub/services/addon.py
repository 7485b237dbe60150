"""
Addon service.

Addon configurations are stored like any other admin resource. Stored
events reach them through the `event.created` hook: every enabled addon
subscribed to the event type gets it delivered by its provider, in the
background, after the storing transaction commits. Rolled back changes
are never announced.
"""

from dataclasses import dataclass
from typing import Any, Callable, Awaitable
from uuid import UUID

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.addons import get_provider
from togglehub.core.config import AddonSettings
from togglehub.core.errors import BadRequestError, NotFoundError
from togglehub.core.hooks.manager import hooks
from togglehub.models.addon import Addon
from togglehub.models.event import Event, EventType
from togglehub.repositories.event import AddonRepository
from togglehub.schemas.addon import AddonCreate

from .event import EventService

logger = structlog.get_logger()

EVENT_TYPES = frozenset(t.value for t in EventType)


class AddonService:
    """Addon configuration and delivery queueing."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.addons = AddonRepository(db)
        self.events = EventService(db)

    async def list_all(self) -> list[Addon]:
        return await self.addons.all()

    async def create(self, data: AddonCreate, created_by: str) -> Addon:
        unknown = sorted(set(data.events) - EVENT_TYPES)
        if unknown:
            raise BadRequestError(
                "Unknown event types",
                details=[{"message": f"{name} is not an event type"} for name in unknown],
            )

        addon = await self.addons.create(
            provider=data.provider,
            description=data.description,
            enabled=data.enabled,
            parameters=data.parameters.model_dump(by_alias=True, mode="json", exclude_none=True),
            events=data.events,
        )
        await self.events.store(
            EventType.ADDON_CONFIG_CREATED,
            created_by,
            data={"id": str(addon.id), "provider": addon.provider, "events": addon.events},
        )
        return addon

    async def delete(self, addon_id: UUID, deleted_by: str) -> None:
        addon = await self.addons.get_by_id(addon_id)
        if addon is None:
            raise NotFoundError(f"Could not find addon with id {addon_id}")

        pre_data = {"id": str(addon.id), "provider": addon.provider, "events": addon.events}
        await self.addons.delete(addon)
        await self.events.store(EventType.ADDON_CONFIG_DELETED, deleted_by, pre_data=pre_data)

    async def schedule_delivery(self, event: Event) -> int:
        """
        Queue an event for every enabled, subscribed addon.

        Subscribers are looked up inside the current transaction and
        delivery starts once it commits. Returns the number of addons
        the event was queued for.
        """
        targets = [
            AddonTarget(id=str(addon.id), provider=addon.provider, parameters=dict(addon.parameters))
            for addon in await self.addons.all(enabled=True)
            if addon.subscribes_to(event.type)
        ]
        if targets:
            hooks.after_commit(self.db, "addon.deliver", event=event, targets=targets)
        return len(targets)


@dataclass(frozen=True)
class AddonTarget:
    """Snapshot of an addon configuration taken before commit."""
    id: str
    provider: str
    parameters: dict[str, Any]


async def deliver(
    event: Event,
    targets: list[AddonTarget],
    addon_settings: AddonSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """
    Hand a committed event to each target's provider.

    A failing addon is logged and does not stop the others. Returns the
    number of addons that handled the event.
    """
    settings = addon_settings or AddonSettings()
    delivered = 0
    for target in targets:
        provider = get_provider(
            target.provider,
            timeout=settings.timeout,
            max_retries=settings.max_retries,
            retry_backoff=settings.retry_backoff,
            transport=transport,
        )
        try:
            await provider.handle_event(event, target.parameters)
            delivered += 1
        except Exception:
            logger.exception(
                "addon_handler_failed",
                addon_id=target.id,
                provider=target.provider,
                event_type=event.type,
            )
    return delivered


def register_addon_hooks(
    addon_settings: AddonSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Callable[..., Awaitable[Any]]]:
    """
    Subscribe addons to stored events.

    `event.created` queues subscribers while the transaction is open and
    `addon.deliver` sends once it has committed. Returns the registered
    handlers by hook name so callers can unregister them.
    """

    async def queue_for_addons(event: Event, db: AsyncSession) -> int:
        return await AddonService(db).schedule_delivery(event)

    async def deliver_to_addons(event: Event, targets: list[AddonTarget]) -> int:
        return await deliver(event, targets, addon_settings, transport)

    handlers = {"event.created": queue_for_addons, "addon.deliver": deliver_to_addons}
    for name, handler in handlers.items():
        hooks.register(name, handler, source="addons")
    return handlers
