"""
Feature toggle service.

Admin-side management of toggles: creation, per-environment
enablement, strategies and variants. Every mutation stores an event.
"""

from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.core.errors import NameExistsError, NotFoundError
from togglehub.models.event import EventType
from togglehub.models.feature import FeatureEnvironment, FeatureStrategy, FeatureToggle
from togglehub.repositories.feature import FeatureToggleRepository
from togglehub.repositories.project import EnvironmentRepository, ProjectRepository
from togglehub.schemas.feature import (
    FeatureCreate,
    FeatureEnvironmentResponse,
    FeatureResponse,
    StrategyCreate,
    StrategyResponse,
    VariantSchema,
)

from .event import EventService

logger = structlog.get_logger()


def strategy_view(strategy: FeatureStrategy) -> StrategyResponse:
    return StrategyResponse(
        id=strategy.id,
        name=strategy.strategy_name,
        constraints=strategy.constraints,
        parameters=strategy.parameters,
        sort_order=strategy.sort_order,
    )


def feature_view(toggle: FeatureToggle) -> FeatureResponse:
    """Admin representation of a toggle with its environments."""
    environments = [
        FeatureEnvironmentResponse(
            name=env.environment,
            enabled=env.enabled,
            strategies=[strategy_view(s) for s in toggle.strategies_in(env.environment)],
        )
        for env in sorted(toggle.environments, key=lambda e: e.environment)
    ]
    return FeatureResponse(
        name=toggle.name,
        project=toggle.project,
        description=toggle.description,
        type=toggle.type,
        stale=toggle.stale,
        impression_data=toggle.impression_data,
        created_at=toggle.created_at,
        environments=environments,
        variants=toggle.variants,
    )


class FeatureToggleService:
    """Feature toggle management."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.features = FeatureToggleRepository(db)
        self.projects = ProjectRepository(db)
        self.environments = EnvironmentRepository(db)
        self.events = EventService(db)

    # ============================================================
    # LOOKUPS
    # ============================================================

    async def list_all(self) -> list[FeatureToggle]:
        return await self.features.list_for_projects(None)

    async def list_in_project(self, project: str) -> list[FeatureToggle]:
        await self._require_project(project)
        return await self.features.list_for_projects([project])

    async def get(self, project: str, name: str) -> FeatureToggle:
        toggle = await self.features.get_by_name(name)
        if toggle is None or toggle.project != project:
            raise NotFoundError(f"Could not find feature toggle {name} in project {project}")
        return toggle

    # ============================================================
    # TOGGLES
    # ============================================================

    async def create(self, project: str, data: FeatureCreate, created_by: str) -> FeatureToggle:
        await self._require_project(project)
        if await self.features.exists(name=data.name):
            raise NameExistsError(f"A feature toggle named {data.name} already exists")

        toggle = FeatureToggle(
            name=data.name,
            project=project,
            description=data.description,
            type=data.type,
            impression_data=data.impression_data,
            variants=[],
            created_by=created_by,
            environments=[
                FeatureEnvironment(environment=env.name, enabled=False)
                for env in await self.environments.all()
            ],
            strategies=[],
        )
        self.db.add(toggle)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent create of the same name
            raise NameExistsError(f"A feature toggle named {data.name} already exists")
        await self.db.refresh(toggle, attribute_names=["created_at"])

        await self.events.store(
            EventType.FEATURE_CREATED,
            created_by,
            project=project,
            feature_name=toggle.name,
            data={
                "name": toggle.name,
                "project": project,
                "type": toggle.type,
                "description": toggle.description,
            },
        )
        logger.info("feature_created", feature=toggle.name, project=project)
        return toggle

    async def delete(self, project: str, name: str, deleted_by: str) -> None:
        toggle = await self.get(project, name)
        await self.features.delete(toggle)

        await self.events.store(
            EventType.FEATURE_DELETED,
            deleted_by,
            project=project,
            feature_name=name,
            pre_data={"name": name, "project": project},
        )

    # ============================================================
    # ENVIRONMENTS
    # ============================================================

    async def set_enabled(
        self,
        project: str,
        name: str,
        environment: str,
        enabled: bool,
        changed_by: str,
    ) -> FeatureToggle:
        """Turn a toggle on or off in one environment."""
        toggle = await self.get(project, name)
        feature_env = await self._feature_environment(toggle, environment)
        feature_env.enabled = enabled
        await self.db.flush()

        event_type = (
            EventType.FEATURE_ENVIRONMENT_ENABLED if enabled
            else EventType.FEATURE_ENVIRONMENT_DISABLED
        )
        await self.events.store(
            event_type,
            changed_by,
            project=project,
            feature_name=name,
            environment=environment,
        )
        return toggle

    # ============================================================
    # STRATEGIES
    # ============================================================

    async def add_strategy(
        self,
        project: str,
        name: str,
        environment: str,
        strategy: StrategyCreate,
        created_by: str,
    ) -> FeatureStrategy:
        toggle = await self.get(project, name)
        await self._feature_environment(toggle, environment)

        feature_strategy = FeatureStrategy(
            feature_name=toggle.name,
            project=toggle.project,
            environment=environment,
            strategy_name=strategy.name,
            parameters=strategy.parameters_dict(),
            constraints=strategy.constraints_dict(),
            sort_order=len(toggle.strategies_in(environment)),
        )
        toggle.strategies.append(feature_strategy)
        await self.db.flush()

        await self.events.store(
            EventType.FEATURE_STRATEGY_ADD,
            created_by,
            project=project,
            feature_name=name,
            environment=environment,
            data={
                "id": str(feature_strategy.id),
                "name": feature_strategy.strategy_name,
                "constraints": feature_strategy.constraints,
                "parameters": feature_strategy.parameters,
            },
        )
        return feature_strategy

    async def remove_strategy(
        self,
        project: str,
        name: str,
        environment: str,
        strategy_id: UUID,
        removed_by: str,
    ) -> None:
        toggle = await self.get(project, name)
        strategy = next(
            (s for s in toggle.strategies_in(environment) if s.id == strategy_id),
            None,
        )
        if strategy is None:
            raise NotFoundError(f"Could not find strategy {strategy_id} on {name} in {environment}")

        pre_data = {
            "id": str(strategy.id),
            "name": strategy.strategy_name,
            "constraints": strategy.constraints,
            "parameters": strategy.parameters,
        }
        toggle.strategies.remove(strategy)
        await self.db.flush()

        await self.events.store(
            EventType.FEATURE_STRATEGY_REMOVE,
            removed_by,
            project=project,
            feature_name=name,
            environment=environment,
            pre_data=pre_data,
        )

    # ============================================================
    # VARIANTS
    # ============================================================

    async def set_variants(
        self,
        project: str,
        name: str,
        variants: list[VariantSchema],
        changed_by: str,
    ) -> FeatureToggle:
        """Replace the variants of a toggle."""
        toggle = await self.get(project, name)
        pre_data = {"variants": list(toggle.variants)}

        toggle.variants = [
            v.model_dump(by_alias=True, mode="json", exclude_none=True) for v in variants
        ]
        await self.db.flush()

        await self.events.store(
            EventType.FEATURE_VARIANTS_UPDATED,
            changed_by,
            project=project,
            feature_name=name,
            data={"variants": toggle.variants},
            pre_data=pre_data,
        )
        return toggle

    # ============================================================
    # HELPERS
    # ============================================================

    async def _require_project(self, project: str) -> None:
        if not await self.projects.exists(id=project):
            raise NotFoundError(f"Could not find project with id {project}")

    async def _feature_environment(self, toggle: FeatureToggle, environment: str) -> FeatureEnvironment:
        """The toggle's row for an environment, created (disabled) if missing."""
        for feature_env in toggle.environments:
            if feature_env.environment == environment:
                return feature_env

        if not await self.environments.exists(name=environment):
            raise NotFoundError(f"Could not find environment with name {environment}")

        feature_env = FeatureEnvironment(environment=environment, enabled=False)
        toggle.environments.append(feature_env)
        await self.db.flush()
        return feature_env
