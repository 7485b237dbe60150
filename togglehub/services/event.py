"""
Event store service.
"""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.core.hooks.manager import hooks
from togglehub.models.event import Event, EventType
from togglehub.repositories.event import EventRepository

logger = structlog.get_logger()


class EventService:
    """Stores events and announces them on the `event.created` hook."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.events = EventRepository(db)

    async def store(
        self,
        type: EventType,
        created_by: str,
        *,
        project: str | None = None,
        feature_name: str | None = None,
        environment: str | None = None,
        data: dict[str, Any] | None = None,
        pre_data: dict[str, Any] | None = None,
    ) -> Event:
        event = await self.events.create(
            type=type.value,
            created_by=created_by,
            project=project,
            feature_name=feature_name,
            environment=environment,
            data=data,
            pre_data=pre_data,
        )
        logger.info("event_stored", event_id=event.id, event_type=event.type)

        await hooks.trigger("event.created", event=event, db=self.db)
        return event

    async def recent(
        self,
        limit: int = 100,
        feature_name: str | None = None,
        project: str | None = None,
    ) -> list[Event]:
        return await self.events.recent(limit=limit, feature_name=feature_name, project=project)
