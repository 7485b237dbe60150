"""
Project and environment repositories.
"""

from sqlalchemy import Select, select

from togglehub.models.project import Project, Environment

from .base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    model = Project

    def _base_query(self) -> Select:
        return select(Project).order_by(Project.created_at, Project.id)


class EnvironmentRepository(BaseRepository[Environment]):
    model = Environment

    def _base_query(self) -> Select:
        return select(Environment).order_by(Environment.sort_order, Environment.name)
