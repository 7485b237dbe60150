"""
API token authentication dependencies.

Every API surface authenticates with an API token sent in the
`Authorization` header, either raw or with a `Bearer ` prefix.

Usage:
    from togglehub.api.dependencies.auth import AdminToken, FrontendToken

    @router.get("/features")
    async def handler(token: AdminToken):
        ...
"""

from typing import Annotated, Callable, Awaitable

from fastapi import Depends, Header

from togglehub.models.api_token import ApiToken, ApiTokenType
from togglehub.services.api_token import ApiTokenService

from .services import get_api_token_service


ADMIN_TYPES = frozenset({ApiTokenType.ADMIN})
CLIENT_TYPES = frozenset({ApiTokenType.CLIENT, ApiTokenType.ADMIN})
FRONTEND_TYPES = frozenset({ApiTokenType.FRONTEND, ApiTokenType.ADMIN})

BEARER_SCHEME = "bearer"


def extract_secret(authorization: str | None) -> str | None:
    """Raw secret from an Authorization header value."""
    if not authorization:
        return None
    parts = authorization.split(None, 1)
    if parts and parts[0].lower() == BEARER_SCHEME:
        parts = parts[1:]
    return parts[0].strip() if parts else None


async def get_api_token(
    authorization: Annotated[str | None, Header()] = None,
    token_service: ApiTokenService = Depends(get_api_token_service),
) -> ApiToken:
    """
    Resolve the request's API token.

    Raises:
        UnauthorizedError (401): missing, unknown or expired token
    """
    return await token_service.resolve(extract_secret(authorization))


def require_token_types(
    allowed: frozenset[ApiTokenType],
) -> Callable[..., Awaitable[ApiToken]]:
    """
    Dependency factory restricting a route to some token types.

    Raises:
        ForbiddenError (403): token type not allowed on this route
    """

    async def dependency(token: ApiToken = Depends(get_api_token)) -> ApiToken:
        return ApiTokenService.authorize(token, allowed)

    return dependency


AdminToken = Annotated[ApiToken, Depends(require_token_types(ADMIN_TYPES))]
ClientToken = Annotated[ApiToken, Depends(require_token_types(CLIENT_TYPES))]
FrontendToken = Annotated[ApiToken, Depends(require_token_types(FRONTEND_TYPES))]


__all__ = [
    "AdminToken",
    "ClientToken",
    "FrontendToken",
    "extract_secret",
    "get_api_token",
    "require_token_types",
]
