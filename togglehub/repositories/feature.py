"""
Feature toggle repository.
"""

from collections.abc import Iterable
from sqlalchemy import Select, select

from togglehub.models.feature import FeatureToggle

from .base import BaseRepository


class FeatureToggleRepository(BaseRepository[FeatureToggle]):
    """
    Feature toggle queries.

    Toggles always come back in insertion order (id), never sorted by
    name; SDK consumers rely on that order.
    """

    model = FeatureToggle

    def _base_query(self) -> Select:
        return select(FeatureToggle).order_by(FeatureToggle.id)

    async def get_by_name(self, name: str) -> FeatureToggle | None:
        return await self.get_one(name=name)

    async def list_for_projects(self, projects: Iterable[str] | None) -> list[FeatureToggle]:
        """
        List toggles, optionally restricted to a set of projects.

        None means every project. Strategies and environments are
        eagerly loaded by the model relationships.
        """
        stmt = self._base_query()
        if projects is not None:
            stmt = stmt.where(FeatureToggle.project.in_(list(projects)))
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
