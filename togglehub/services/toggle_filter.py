"""
Token-scoped toggle filtering.

Frontend SDKs get pre-evaluated toggles: only what is enabled in the
token's environment and has at least one strategy whose constraints
hold for the request context. Server-side SDKs get full definitions
for one environment and evaluate locally.
"""

import structlog

from togglehub.core.config import FrontendSettings
from togglehub.models.feature import FeatureStrategy, FeatureToggle
from togglehub.models.project import DEFAULT_ENVIRONMENT
from togglehub.repositories.feature import FeatureToggleRepository
from togglehub.schemas.constraint import load_constraints
from togglehub.schemas.feature import BUILTIN_STRATEGIES, ClientFeature
from togglehub.schemas.frontend import EvaluationContext, FrontendToggle

from .api_token import TokenScope
from .constraints import constraints_pass
from .variants import select_variant

logger = structlog.get_logger()


class ToggleFilterService:
    """Filters toggles down to what an API token may see."""

    def __init__(
        self,
        features: FeatureToggleRepository,
        frontend_settings: FrontendSettings | None = None,
    ):
        self.features = features
        self.frontend_settings = frontend_settings or FrontendSettings()

    async def _toggles_in_scope(self, scope: TokenScope) -> list[FeatureToggle]:
        projects = None if scope.all_projects else scope.projects
        return await self.features.list_for_projects(projects)

    # ============================================================
    # FRONTEND
    # ============================================================

    def strategy_passes(self, strategy: FeatureStrategy, context: EvaluationContext) -> bool:
        """
        All constraints of the strategy hold for the context.

        The strategy algorithm itself is not run; unknown strategy names
        count as satisfied unless strict strategy names are configured.
        """
        if (
            self.frontend_settings.strict_strategy_names
            and strategy.strategy_name not in BUILTIN_STRATEGIES
        ):
            return False
        return constraints_pass(load_constraints(strategy.constraints), context)

    def is_visible(self, toggle: FeatureToggle, environment: str, context: EvaluationContext) -> bool:
        if not toggle.is_enabled_in(environment):
            return False
        return any(self.strategy_passes(s, context) for s in toggle.strategies_in(environment))

    async def frontend_toggles(
        self,
        scope: TokenScope,
        context: EvaluationContext,
    ) -> list[FrontendToggle]:
        """Evaluated toggles for a frontend token, in creation order."""
        visible = []
        for toggle in await self._toggles_in_scope(scope):
            if scope.all_environments:
                environments = [e.environment for e in toggle.environments]
            else:
                environments = [scope.environment]

            if not any(self.is_visible(toggle, env, context) for env in environments):
                continue

            visible.append(
                FrontendToggle(
                    name=toggle.name,
                    enabled=True,
                    impression_data=toggle.impression_data,
                    variant=select_variant(toggle.name, toggle.variants, context),
                )
            )

        logger.debug(
            "frontend_toggles_evaluated",
            environment=scope.environment,
            app_name=context.app_name,
            count=len(visible),
        )
        return visible

    # ============================================================
    # CLIENT
    # ============================================================

    async def client_features(self, scope: TokenScope) -> list[ClientFeature]:
        """Full toggle definitions for server-side SDKs."""
        environment = DEFAULT_ENVIRONMENT if scope.all_environments else scope.environment
        return [
            ClientFeature(
                name=toggle.name,
                type=toggle.type,
                description=toggle.description,
                project=toggle.project,
                enabled=toggle.is_enabled_in(environment),
                stale=toggle.stale,
                impression_data=toggle.impression_data,
                strategies=[
                    {
                        "id": str(s.id),
                        "name": s.strategy_name,
                        "constraints": s.constraints,
                        "parameters": s.parameters,
                    }
                    for s in toggle.strategies_in(environment)
                ],
                variants=toggle.variants,
            )
            for toggle in await self._toggles_in_scope(scope)
        ]
