"""
Base repository with common CRUD operations.
"""

from typing import TypeVar, Generic, Type, Any
from sqlalchemy import Select, select, func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.models.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Base repository providing common CRUD operations.

    Usage:
        class ProjectRepository(BaseRepository[Project]):
            model = Project

        repo = ProjectRepository(db)
        project = await repo.get_by_id("default")
    """

    model: Type[ModelT]

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base_query(self) -> Select:
        """Base query - override to add default filters or ordering."""
        return select(self.model)

    def _insert(self) -> Any:
        """
        Dialect-specific INSERT supporting ON CONFLICT clauses.

        PostgreSQL in production, SQLite in tests. Both expose
        on_conflict_do_update / on_conflict_do_nothing.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(self.model)
        if dialect == "sqlite":
            return sqlite.insert(self.model)
        raise NotImplementedError(f"Upserts are not supported on {dialect}")

    async def get_by_id(self, id: Any) -> ModelT | None:
        """Get entity by primary key."""
        return await self.db.get(self.model, id)

    async def get_one(self, **filters) -> ModelT | None:
        """Get single entity by filters."""
        stmt = self._base_query()
        for field, value in filters.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def exists(self, **filters) -> bool:
        """Check if entity exists."""
        stmt = select(func.count()).select_from(self.model)
        for field, value in filters.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        count = await self.db.scalar(stmt)
        return (count or 0) > 0

    async def all(self, **filters) -> list[ModelT]:
        """Get all entities matching filters (no pagination)."""
        stmt = self._base_query()
        for field, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(self.model, field) == value)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data) -> ModelT:
        """Create new entity."""
        entity = self.model(**data)
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity: ModelT) -> None:
        """Delete entity (hard delete)."""
        await self.db.delete(entity)
        await self.db.flush()
