"""Connected channel (integration) management.

Handles the OAuth connect flow and storage of channel credentials.
"""

from typing import Any
from uuid import UUID

import httpx
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from manypost.adapters.publisher.youtube_oauth import (
    build_authorization_url,
    exchange_code,
    fetch_channel,
)
from manypost.db.models import IntegrationModel
from manypost.domain.enums import Platform
from manypost.domain.errors import InvalidStateError, NotFoundError
from manypost.domain.models import ChannelInfo, TokenSet
from manypost.logging import get_logger
from manypost.services.encryption import encrypt_token
from manypost.services.tokens import token_expiry
from manypost.utils.time import utcnow

logger = get_logger(__name__)

_UPSERT_KEY = ["user_id", "platform", "channel_id"]


def start_connect(user_id: UUID, redirect_uri: str | None = None) -> str:
    """Authorization URL that starts the YouTube connect flow for a user."""
    return build_authorization_url(state=str(user_id), redirect_uri=redirect_uri)


def complete_connect(
    session: Session,
    user_id: UUID,
    code: str,
    state: str,
    redirect_uri: str | None = None,
    client: httpx.Client | None = None,
) -> IntegrationModel:
    """Finish the connect flow and store the channel.

    Raises:
        InvalidStateError: If ``state`` is not the caller's user id.
        TokenExchangeError: If the code cannot be exchanged.
        NoChannelError: If the Google account has no YouTube channel.
    """
    if state != str(user_id):
        logger.warning("oauth_state_mismatch", user_id=str(user_id))
        raise InvalidStateError("OAuth state does not match the authenticated user")

    tokens = exchange_code(code, redirect_uri=redirect_uri, client=client)
    channel = fetch_channel(tokens.access_token, client=client)

    integration = upsert_integration(session, user_id, Platform.YOUTUBE, channel, tokens)

    logger.info(
        "integration_connected",
        user_id=str(user_id),
        integration_id=str(integration.id),
        channel_id=channel.channel_id,
        channel_name=channel.title,
    )
    return integration


def upsert_integration(
    session: Session,
    user_id: UUID,
    platform: str,
    channel: ChannelInfo,
    tokens: TokenSet,
) -> IntegrationModel:
    """Insert or update the integration keyed on (user, platform, channel id).

    Reconnecting the same channel overwrites its tokens and reactivates it.
    ``complete_connect`` always passes a refresh token, but callers that import
    a token set directly may not; the stored refresh token is then kept.
    """
    now = utcnow()
    values: dict[str, Any] = {
        "user_id": user_id,
        "platform": str(platform),
        "channel_id": channel.channel_id,
        "channel_name": channel.title,
        "profile_image_url": channel.thumbnail_url,
        "encrypted_access_token": encrypt_token(tokens.access_token),
        "encrypted_refresh_token": (
            encrypt_token(tokens.refresh_token) if tokens.refresh_token else None
        ),
        "token_expires_at": token_expiry(tokens.expires_in, now),
        "scopes": tokens.scope,
        "is_active": True,
        "connected_at": now,
    }

    dialect = session.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = insert(IntegrationModel).values(**values)

    update_columns = {
        name: stmt.excluded[name]
        for name in values
        if name not in (*_UPSERT_KEY, "connected_at")
    }
    # Token sets without a refresh token keep the stored one
    if not tokens.refresh_token:
        update_columns.pop("encrypted_refresh_token")
    update_columns["updated_at"] = now

    stmt = stmt.on_conflict_do_update(index_elements=_UPSERT_KEY, set_=update_columns)
    session.execute(stmt)
    session.commit()

    integration = session.execute(
        select(IntegrationModel).where(
            IntegrationModel.user_id == user_id,
            IntegrationModel.platform == str(platform),
            IntegrationModel.channel_id == channel.channel_id,
        )
    ).scalar_one()
    session.refresh(integration)
    return integration


def get_integration(
    session: Session,
    user_id: UUID,
    integration_id: UUID,
) -> IntegrationModel:
    """Get an integration owned by the user.

    Raises:
        NotFoundError: If it does not exist or belongs to someone else.
    """
    integration = session.get(IntegrationModel, integration_id)
    if not integration or integration.user_id != user_id:
        raise NotFoundError(f"No integration found with ID '{integration_id}'")
    return integration


def list_integrations(
    session: Session,
    user_id: UUID,
    platform: str | None = None,
    active_only: bool = False,
) -> list[IntegrationModel]:
    query = (
        select(IntegrationModel)
        .where(IntegrationModel.user_id == user_id)
        .order_by(IntegrationModel.connected_at.desc())
    )

    if platform:
        query = query.where(IntegrationModel.platform == platform)

    if active_only:
        query = query.where(IntegrationModel.is_active.is_(True))

    return list(session.execute(query).scalars().all())


def disconnect_integration(
    session: Session,
    user_id: UUID,
    integration_id: UUID,
) -> None:
    """Delete an integration and the posts scheduled on it."""
    integration = get_integration(session, user_id, integration_id)
    session.delete(integration)
    session.commit()

    logger.info(
        "integration_disconnected",
        user_id=str(user_id),
        integration_id=str(integration_id),
        platform=integration.platform,
    )
