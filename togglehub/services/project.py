"""
Project and environment service.
"""

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.core.errors import NameExistsError, NotFoundError
from togglehub.models.event import EventType
from togglehub.models.project import DEFAULT_ENVIRONMENT, DEFAULT_PROJECT, Environment, Project
from togglehub.repositories.project import EnvironmentRepository, ProjectRepository
from togglehub.schemas.project import EnvironmentCreate, ProjectCreate
from togglehub.services.event import EventService

logger = structlog.get_logger()


class ProjectService:
    """Projects and environments."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.projects = ProjectRepository(db)
        self.environments = EnvironmentRepository(db)
        self.events = EventService(db)

    async def ensure_defaults(self) -> None:
        """Create the default project and environment if missing."""
        if not await self.projects.exists(id=DEFAULT_PROJECT):
            await self.projects.create(id=DEFAULT_PROJECT, name="Default")
            logger.info("default_project_created", project=DEFAULT_PROJECT)
        if not await self.environments.exists(name=DEFAULT_ENVIRONMENT):
            await self.environments.create(
                name=DEFAULT_ENVIRONMENT,
                type="production",
                sort_order=1,
            )
            logger.info("default_environment_created", environment=DEFAULT_ENVIRONMENT)

    # ============================================================
    # PROJECTS
    # ============================================================

    async def list_projects(self) -> list[Project]:
        return await self.projects.all()

    async def get_project(self, project_id: str) -> Project:
        project = await self.projects.get_by_id(project_id)
        if project is None:
            raise NotFoundError(f"Could not find project with id {project_id}")
        return project

    async def create_project(self, data: ProjectCreate, created_by: str) -> Project:
        if await self.projects.exists(id=data.id):
            raise NameExistsError(f"A project with id {data.id} already exists")

        try:
            project = await self.projects.create(
                id=data.id,
                name=data.name,
                description=data.description,
            )
        except IntegrityError:
            raise NameExistsError(f"A project with id {data.id} already exists")
        await self.events.store(
            EventType.PROJECT_CREATED,
            created_by,
            project=project.id,
            data={"id": project.id, "name": project.name},
        )
        return project

    # ============================================================
    # ENVIRONMENTS
    # ============================================================

    async def list_environments(self) -> list[Environment]:
        return await self.environments.all()

    async def get_environment(self, name: str) -> Environment:
        environment = await self.environments.get_by_id(name)
        if environment is None:
            raise NotFoundError(f"Could not find environment with name {name}")
        return environment

    async def create_environment(self, data: EnvironmentCreate, created_by: str) -> Environment:
        if await self.environments.exists(name=data.name):
            raise NameExistsError(f"An environment named {data.name} already exists")

        try:
            environment = await self.environments.create(
                name=data.name,
                type=data.type,
                enabled=data.enabled,
                sort_order=data.sort_order,
            )
        except IntegrityError:
            raise NameExistsError(f"An environment named {data.name} already exists")
        await self.events.store(
            EventType.ENVIRONMENT_CREATED,
            created_by,
            environment=environment.name,
            data={"name": environment.name, "type": environment.type},
        )
        return environment
