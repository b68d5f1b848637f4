"""Connected channel endpoints, including the YouTube OAuth flow."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict, Field

from manypost.api.deps import CurrentUserDep, SessionDep
from manypost.services import integrations as integration_service

router = APIRouter(prefix="/integrations", tags=["Integrations"])


class IntegrationResponse(BaseModel):
    """A connected channel. Tokens are never returned."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    platform: str
    channel_id: str
    channel_name: str | None
    profile_image_url: str | None
    is_active: bool
    token_expires_at: datetime | None
    connected_at: datetime
    last_synced_at: datetime | None


class IntegrationListResponse(BaseModel):
    integrations: list[IntegrationResponse]


class AuthorizeResponse(BaseModel):
    auth_url: str = Field(serialization_alias="authUrl")


class CallbackRequest(BaseModel):
    """Authorization code handed back by the frontend callback page."""

    code: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    redirect_uri: str | None = None


class ChannelSummary(BaseModel):
    name: str | None


class CallbackResponse(BaseModel):
    success: bool = True
    channel: ChannelSummary
    integration: IntegrationResponse


@router.get("", response_model=IntegrationListResponse)
async def list_integrations(
    session: SessionDep,
    user_id: CurrentUserDep,
    active_only: bool = Query(False, description="Only return active integrations"),
) -> IntegrationListResponse:
    """List the caller's connected channels."""
    integrations = integration_service.list_integrations(
        session, user_id, active_only=active_only
    )
    return IntegrationListResponse(
        integrations=[IntegrationResponse.model_validate(i) for i in integrations]
    )


@router.get("/youtube/authorize", response_model=AuthorizeResponse)
async def authorize_youtube(
    user_id: CurrentUserDep,
    redirect_uri: str | None = Query(None, description="Where Google sends the user back"),
) -> AuthorizeResponse:
    """Start connecting a YouTube channel."""
    return AuthorizeResponse(auth_url=integration_service.start_connect(user_id, redirect_uri))


@router.post("/youtube/callback", response_model=CallbackResponse)
def youtube_callback(
    request: CallbackRequest,
    session: SessionDep,
    user_id: CurrentUserDep,
) -> CallbackResponse:
    """Complete the YouTube OAuth flow and store the channel."""
    integration = integration_service.complete_connect(
        session,
        user_id,
        code=request.code,
        state=request.state,
        redirect_uri=request.redirect_uri,
    )
    return CallbackResponse(
        channel=ChannelSummary(name=integration.channel_name),
        integration=IntegrationResponse.model_validate(integration),
    )


@router.delete("/{integration_id}", status_code=status.HTTP_204_NO_CONTENT)
async def disconnect_integration(
    integration_id: UUID,
    session: SessionDep,
    user_id: CurrentUserDep,
) -> None:
    """Disconnect a channel and drop the posts scheduled on it."""
    integration_service.disconnect_integration(session, user_id, integration_id)
