"""API key management endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, ConfigDict, Field

from manypost.api.deps import CurrentUserDep, SessionDep
from manypost.services import api_keys as api_key_service

router = APIRouter(prefix="/api-keys", tags=["API Keys"])


class CreateApiKeyRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class ApiKeyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    key_prefix: str
    is_active: bool
    created_at: datetime
    last_used_at: datetime | None


class CreatedApiKeyResponse(ApiKeyResponse):
    """Includes the plaintext key, returned only once."""

    key: str


class ApiKeyListResponse(BaseModel):
    api_keys: list[ApiKeyResponse]


@router.get("", response_model=ApiKeyListResponse)
async def list_api_keys(session: SessionDep, user_id: CurrentUserDep) -> ApiKeyListResponse:
    keys = api_key_service.list_api_keys(session, user_id)
    return ApiKeyListResponse(api_keys=[ApiKeyResponse.model_validate(k) for k in keys])


@router.post("", response_model=CreatedApiKeyResponse, status_code=status.HTTP_201_CREATED)
async def create_api_key(
    request: CreateApiKeyRequest,
    session: SessionDep,
    user_id: CurrentUserDep,
) -> CreatedApiKeyResponse:
    """Create a key. Store it now; it cannot be shown again."""
    api_key, raw_key = api_key_service.create_api_key(session, user_id, request.name)
    return CreatedApiKeyResponse(
        **ApiKeyResponse.model_validate(api_key).model_dump(),
        key=raw_key,
    )


@router.delete("/{key_id}", response_model=ApiKeyResponse)
async def revoke_api_key(key_id: UUID, session: SessionDep, user_id: CurrentUserDep) -> ApiKeyResponse:
    """Revoke a key. It stays listed as inactive."""
    return ApiKeyResponse.model_validate(api_key_service.revoke_api_key(session, user_id, key_id))
