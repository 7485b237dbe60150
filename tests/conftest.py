"""
Pytest fixtures for testing.

Provides:
- Async database session on in-memory SQLite, seeded with the default
  project and environment
- Test client sharing that session
- Factory fixtures for API tokens, projects, environments and toggles
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")

from typing import Any, AsyncGenerator
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from togglehub.main import app
from togglehub.models.base import Base
from togglehub.models.api_token import ApiTokenType
from togglehub.models.feature import FeatureToggle
from togglehub.models.project import DEFAULT_ENVIRONMENT, DEFAULT_PROJECT, Environment, Project
from togglehub.api.dependencies.database import get_db
from togglehub.core.hooks.manager import hooks
from togglehub.schemas.api_token import ApiTokenCreate
from togglehub.schemas.feature import FeatureCreate, VariantSchema, strategy_adapter
from togglehub.schemas.project import EnvironmentCreate, ProjectCreate
from togglehub.services.api_token import ApiTokenService
from togglehub.services.feature_toggle import FeatureToggleService
from togglehub.services.project import ProjectService


# Test database URL (SQLite in-memory for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_STRATEGIES: list[dict[str, Any]] = [{"name": "default", "constraints": [], "parameters": {}}]


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Database session seeded with the default project and environment.

    Each test gets a fresh database that's rolled back after.
    """
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        await ProjectService(session).ensure_defaults()
        await session.flush()
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Test client with database session override.
    """

    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clean_hooks():
    """No hook handler leaks from one test into the next."""
    yield
    hooks.clear()


# ============ Factory Fixtures ============


class TokenFactory:
    """Factory for creating API tokens. Returns the secret."""

    def __init__(self, db: AsyncSession):
        self.service = ApiTokenService(db)

    async def create(
        self,
        type: ApiTokenType = ApiTokenType.FRONTEND,
        projects: list[str] | None = None,
        environment: str | None = None,
        name: str | None = None,
    ) -> str:
        if type == ApiTokenType.ADMIN:
            projects, environment = None, None
        else:
            projects = projects or [DEFAULT_PROJECT]
            environment = environment or DEFAULT_ENVIRONMENT

        data = ApiTokenCreate(
            token_name=name or f"{type.value}-token-{uuid4().hex[:8]}",
            type=type,
            projects=projects,
            environment=environment,
        )
        secret, _ = await self.service.create(data, created_by="test")
        return secret

    async def headers(self, type: ApiTokenType = ApiTokenType.FRONTEND, **kwargs) -> dict[str, str]:
        return {"Authorization": await self.create(type, **kwargs)}


class ProjectFactory:
    """Factory for projects and environments."""

    def __init__(self, db: AsyncSession):
        self.service = ProjectService(db)

    async def create(self, id: str, name: str | None = None) -> Project:
        return await self.service.create_project(
            ProjectCreate(id=id, name=name or id),
            created_by="test",
        )

    async def create_environment(self, name: str, type: str = "production") -> Environment:
        return await self.service.create_environment(
            EnvironmentCreate(name=name, type=type),
            created_by="test",
        )


class ToggleFactory:
    """
    Factory for feature toggles.

    Mirrors what an admin does: create the toggle, add strategies in
    one environment, then switch it on or off there.
    """

    def __init__(self, db: AsyncSession):
        self.service = FeatureToggleService(db)

    async def create(
        self,
        name: str,
        *,
        project: str = DEFAULT_PROJECT,
        environment: str = DEFAULT_ENVIRONMENT,
        enabled: bool = True,
        strategies: list[dict[str, Any]] | None = None,
        variants: list[dict[str, Any]] | None = None,
        impression_data: bool = False,
    ) -> FeatureToggle:
        toggle = await self.service.create(
            project,
            FeatureCreate(name=name, impression_data=impression_data),
            created_by="test",
        )
        for strategy in DEFAULT_STRATEGIES if strategies is None else strategies:
            await self.service.add_strategy(
                project,
                name,
                environment,
                strategy_adapter.validate_python(strategy),
                created_by="test",
            )
        await self.service.set_enabled(project, name, environment, enabled, changed_by="test")
        if variants:
            await self.service.set_variants(
                project,
                name,
                [VariantSchema.model_validate(v) for v in variants],
                changed_by="test",
            )
        return toggle


@pytest_asyncio.fixture
async def token_factory(db: AsyncSession) -> TokenFactory:
    return TokenFactory(db)


@pytest_asyncio.fixture
async def project_factory(db: AsyncSession) -> ProjectFactory:
    return ProjectFactory(db)


@pytest_asyncio.fixture
async def toggle_factory(db: AsyncSession) -> ToggleFactory:
    return ToggleFactory(db)


# ============ Auth Helpers ============


@pytest_asyncio.fixture
async def admin_headers(token_factory: TokenFactory) -> dict[str, str]:
    """Headers with a wildcard admin token."""
    return await token_factory.headers(ApiTokenType.ADMIN)


@pytest_asyncio.fixture
async def frontend_headers(token_factory: TokenFactory) -> dict[str, str]:
    """Headers with a frontend token for the default project and environment."""
    return await token_factory.headers(ApiTokenType.FRONTEND)


@pytest_asyncio.fixture
async def client_headers(token_factory: TokenFactory) -> dict[str, str]:
    """Headers with a client token for the default project and environment."""
    return await token_factory.headers(ApiTokenType.CLIENT)
