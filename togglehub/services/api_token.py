"""
API token service.

Secrets carry their scope in a readable prefix:

    <project>:<environment>.<random>    single project
    []:<environment>.<random>           several projects
    *:*.<random>                        admin, everything

Only the SHA-256 hash of a secret is stored.
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from togglehub.core.config import AuthSettings
from togglehub.core.errors import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from togglehub.models.api_token import ALL, ApiToken, ApiTokenType
from togglehub.models.event import EventType
from togglehub.models.project import DEFAULT_ENVIRONMENT
from togglehub.repositories.api_token import ApiTokenRepository
from togglehub.repositories.project import ProjectRepository, EnvironmentRepository
from togglehub.schemas.api_token import ApiTokenCreate
from togglehub.services.event import EventService
from togglehub.utils.timezone import to_utc, utc_now

logger = structlog.get_logger()


@dataclass(frozen=True)
class TokenScope:
    """Projects and environment a token may see."""
    projects: tuple[str, ...]
    environment: str

    @classmethod
    def from_token(cls, token: ApiToken) -> "TokenScope":
        return cls(projects=tuple(token.projects), environment=token.environment)

    @property
    def all_projects(self) -> bool:
        return ALL in self.projects

    @property
    def all_environments(self) -> bool:
        return self.environment == ALL

    def resolve_environment(self, requested: str | None = None) -> str:
        """
        Environment a write (metrics, registration) is recorded against.

        A token bound to one environment always wins. Wildcard tokens use
        what the client sent, falling back to the default environment.
        """
        if not self.all_environments:
            return self.environment
        return requested or DEFAULT_ENVIRONMENT


def hash_secret(secret: str) -> str:
    """Hash an API token secret."""
    return hashlib.sha256(secret.encode()).hexdigest()


def scope_prefix(projects: list[str], environment: str) -> str:
    if len(projects) > 1:
        project = "[]"
    else:
        project = projects[0] if projects else ALL
    return f"{project}:{environment}."


def generate_secret(projects: list[str], environment: str, nbytes: int = 32) -> str:
    """Generate a new secret for the given scope."""
    return scope_prefix(projects, environment) + secrets.token_hex(nbytes)


def parse_secret(secret: str) -> tuple[list[str], str]:
    """
    Read the scope out of a secret's prefix.

    Raises ValueError for secrets without a usable prefix; multi-project
    secrets do not name their projects and cannot be parsed either.
    """
    head, sep, random_part = secret.partition(".")
    project, colon, environment = head.partition(":")
    if not sep or not colon or not random_part or not project or not environment:
        raise ValueError("Secret must look like <project>:<environment>.<random>")
    if project == "[]":
        raise ValueError("Multi-project secrets cannot be created from configuration")
    return [project], environment


class ApiTokenService:
    """API token management and request authentication."""

    PREFIX_RANDOM_CHARS = 6

    def __init__(self, db: AsyncSession, auth_settings: AuthSettings | None = None):
        self.db = db
        self.tokens = ApiTokenRepository(db)
        self.projects = ProjectRepository(db)
        self.environments = EnvironmentRepository(db)
        self.events = EventService(db)
        self.auth_settings = auth_settings or AuthSettings()

    # ============================================================
    # AUTHENTICATION
    # ============================================================

    async def resolve(self, secret: str | None) -> ApiToken:
        """
        Find the token for a raw secret.

        Raises:
            UnauthorizedError: missing, unknown or expired secret.
        """
        if not secret:
            raise UnauthorizedError()

        token = await self.tokens.get_by_hash(hash_secret(secret))
        if token is None or token.is_expired:
            raise UnauthorizedError()

        await self._touch(token)
        return token

    async def _touch(self, token: ApiToken) -> None:
        """
        Best-effort seen_at update.

        Skipped while the last touch is recent, so a busy token does not
        write its row on every request. Runs in a savepoint; a failure is
        logged and the request carries on.
        """
        now = utc_now()
        interval = timedelta(seconds=self.auth_settings.seen_at_interval_seconds)
        if token.seen_at is not None and now - to_utc(token.seen_at) < interval:
            return

        try:
            async with self.db.begin_nested():
                await self.tokens.mark_seen(token, now)
        except SQLAlchemyError as e:
            logger.warning("token_seen_at_update_failed", token_id=str(token.id), error=str(e)[:200])

    @staticmethod
    def authorize(token: ApiToken, allowed_types: frozenset[ApiTokenType]) -> ApiToken:
        """Raise ForbiddenError unless the token's type is allowed."""
        if token.type not in allowed_types:
            raise ForbiddenError(
                f"{token.type.value} tokens are not allowed to access this resource"
            )
        return token

    # ============================================================
    # MANAGEMENT
    # ============================================================

    async def list_all(self) -> list[ApiToken]:
        return await self.tokens.all()

    async def create(self, data: ApiTokenCreate, created_by: str) -> tuple[str, ApiToken]:
        """Create a token. Returns (secret, token); the secret is never stored."""
        await self._validate_scope(data.projects, data.environment)

        secret = generate_secret(data.projects, data.environment, self.auth_settings.token_bytes)
        token = await self._insert(
            secret,
            token_name=data.token_name,
            type=data.type,
            projects=data.projects,
            environment=data.environment,
            expires_at=data.expires_at,
        )

        await self.events.store(
            EventType.API_TOKEN_CREATED,
            created_by,
            environment=token.environment,
            data={
                "tokenName": token.token_name,
                "type": token.type.value,
                "projects": token.projects,
                "environment": token.environment,
            },
        )
        return secret, token

    async def delete(self, token_id: UUID, deleted_by: str) -> None:
        token = await self.tokens.get_by_id(token_id)
        if token is None:
            raise NotFoundError(f"Could not find API token with id {token_id}")

        pre_data = {
            "tokenName": token.token_name,
            "type": token.type.value,
            "projects": token.projects,
            "environment": token.environment,
        }
        await self.tokens.delete(token)
        await self.events.store(EventType.API_TOKEN_DELETED, deleted_by, pre_data=pre_data)

    async def ensure_init_tokens(self, init_tokens: dict[str, list[str]]) -> int:
        """
        Create configured startup tokens that do not exist yet.

        Returns the number of tokens created.
        """
        created = 0
        for type_name, secrets_ in init_tokens.items():
            token_type = ApiTokenType(type_name)
            for secret in secrets_:
                if await self.tokens.get_by_hash(hash_secret(secret)):
                    continue
                try:
                    projects, environment = parse_secret(secret)
                except ValueError as e:
                    logger.warning("init_token_skipped", type=type_name, reason=str(e))
                    continue

                if token_type == ApiTokenType.ADMIN:
                    projects, environment = [ALL], ALL
                await self._insert(
                    secret,
                    token_name=f"init-{type_name}-{created + 1}",
                    type=token_type,
                    projects=projects,
                    environment=environment,
                )
                created += 1

        if created:
            logger.info("init_tokens_created", count=created)
        return created

    # ============================================================
    # HELPERS
    # ============================================================

    async def _insert(self, secret: str, **data) -> ApiToken:
        prefix_length = secret.index(".") + 1 + self.PREFIX_RANDOM_CHARS
        return await self.tokens.create(
            secret_prefix=secret[:prefix_length],
            secret_hash=hash_secret(secret),
            **data,
        )

    async def _validate_scope(self, projects: list[str], environment: str) -> None:
        for project in projects:
            if project != ALL and not await self.projects.exists(id=project):
                raise BadRequestError(f"Project {project} does not exist")
        if environment != ALL and not await self.environments.exists(name=environment):
            raise BadRequestError(f"Environment {environment} does not exist")
