"""
Event and addon repositories.
"""

from sqlalchemy import Select, select

from togglehub.models.event import Event
from togglehub.models.addon import Addon

from .base import BaseRepository


class EventRepository(BaseRepository[Event]):
    model = Event

    async def recent(
        self,
        limit: int = 100,
        feature_name: str | None = None,
        project: str | None = None,
    ) -> list[Event]:
        """Most recent events first."""
        stmt = select(Event).order_by(Event.id.desc()).limit(limit)
        if feature_name:
            stmt = stmt.where(Event.feature_name == feature_name)
        if project:
            stmt = stmt.where(Event.project == project)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())


class AddonRepository(BaseRepository[Addon]):
    model = Addon

    def _base_query(self) -> Select:
        return select(Addon).order_by(Addon.created_at)
