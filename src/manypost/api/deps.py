"""FastAPI dependencies."""

import secrets
from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from manypost.config import settings
from manypost.db.session import get_session
from manypost.domain.errors import AuthError, ForbiddenError
from manypost.services.api_keys import authenticate_api_key
from manypost.services.storage import StorageGateway, get_storage

# Database session dependency
SessionDep = Annotated[Session, Depends(get_session)]

# Object storage dependency
StorageDep = Annotated[StorageGateway, Depends(get_storage)]


@dataclass
class Principal:
    """The authenticated caller: a user API key or the service token."""

    user_id: UUID | None = None
    is_service: bool = False


def get_principal(
    session: SessionDep,
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """Authenticate the ``Authorization: Bearer`` header."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthError("Missing or invalid authorization header")

    token = authorization[len("bearer ") :].strip()

    if settings.service_api_token and secrets.compare_digest(
        token.encode(), settings.service_api_token.encode()
    ):
        return Principal(is_service=True)

    api_key = authenticate_api_key(session, token)
    return Principal(user_id=api_key.user_id)


PrincipalDep = Annotated[Principal, Depends(get_principal)]


def get_current_user_id(principal: PrincipalDep) -> UUID:
    """Require a user API key."""
    if principal.user_id is None:
        raise ForbiddenError("This endpoint requires a user API key")
    return principal.user_id


CurrentUserDep = Annotated[UUID, Depends(get_current_user_id)]


def require_service(principal: PrincipalDep) -> Principal:
    """Require the service token."""
    if not principal.is_service:
        raise ForbiddenError("This endpoint requires the service token")
    return principal


ServiceDep = Annotated[Principal, Depends(require_service)]
