"""
API token management routes.
"""

from uuid import UUID
from fastapi import APIRouter, Depends, status

from togglehub.api.dependencies.auth import AdminToken
from togglehub.api.dependencies.services import get_api_token_service
from togglehub.schemas.api_token import (
    ApiTokenCreate,
    ApiTokenCreatedResponse,
    ApiTokenListResponse,
    ApiTokenResponse,
)
from togglehub.services.api_token import ApiTokenService

router = APIRouter()


@router.get("", response_model=ApiTokenListResponse)
async def list_api_tokens(
    _: AdminToken,
    token_service: ApiTokenService = Depends(get_api_token_service),
):
    """List API tokens. Secrets are never returned."""
    tokens = await token_service.list_all()
    return ApiTokenListResponse(tokens=[ApiTokenResponse.model_validate(t) for t in tokens])


@router.post("", response_model=ApiTokenCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_api_token(
    data: ApiTokenCreate,
    token: AdminToken,
    token_service: ApiTokenService = Depends(get_api_token_service),
):
    """
    Create an API token.

    The secret is only returned here; store it securely.
    """
    secret, api_token = await token_service.create(data, created_by=token.token_name)
    return ApiTokenCreatedResponse(
        secret=secret,
        **ApiTokenResponse.model_validate(api_token).model_dump(),
    )


@router.delete("/{token_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_api_token(
    token_id: UUID,
    token: AdminToken,
    token_service: ApiTokenService = Depends(get_api_token_service),
):
    """Revoke (delete) an API token."""
    await token_service.delete(token_id, deleted_by=token.token_name)
