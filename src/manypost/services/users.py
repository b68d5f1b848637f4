"""User management service."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from manypost.db.models import UserModel
from manypost.domain.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def create_user(session: Session, email: str, full_name: str | None = None) -> UserModel:
    """Create a user.

    Raises:
        ValidationError: If the email is empty or already registered.
    """
    email = email.strip().lower()
    if not email or "@" not in email:
        raise ValidationError(f"Invalid email address: '{email}'")

    existing = session.execute(
        select(UserModel).where(UserModel.email == email)
    ).scalar_one_or_none()
    if existing:
        raise ValidationError(f"A user with email '{email}' already exists")

    user = UserModel(email=email, full_name=full_name)
    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Created user {user.id} ({email})")
    return user


def get_user(session: Session, user_id: UUID) -> UserModel:
    """Get a user by ID.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = session.get(UserModel, user_id)
    if not user:
        raise NotFoundError(f"No user found with ID '{user_id}'")
    return user


def get_user_by_email(session: Session, email: str) -> UserModel:
    user = session.execute(
        select(UserModel).where(UserModel.email == email.strip().lower())
    ).scalar_one_or_none()
    if not user:
        raise NotFoundError(f"No user found with email '{email}'")
    return user
