"""
Current-user profile reads and edits.
"""
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from cinecritic.core.errors import DuplicateKeyError, InvalidInputError, NotFoundError
from cinecritic.core.security import hash_password, verify_password
from cinecritic.db.models import User, UserRoleEnum

MIN_PASSWORD_LENGTH = 6


class UserNotFoundError(NotFoundError):
    """Raised when the user does not exist."""


class UsernameTakenError(DuplicateKeyError):
    """Raised when another account already uses the requested username."""


def build_profile_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": UserRoleEnum.value_of(user.role),
        "avatar_url": user.avatar_url,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def get_profile(db: Session, user_id: UUID) -> dict:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UserNotFoundError("User not found")
    return build_profile_dict(user)


def update_profile(db: Session, user_id: UUID, changes: dict[str, Any]) -> dict:
    """
    Update username, avatar_url and/or password.

    *changes* only holds keys the client actually sent. Rules:
      - something must be provided and something must change
      - username is trimmed, non-empty and unique among other users
      - a new password needs current_password and MIN_PASSWORD_LENGTH chars
    """
    username = changes.get("username")
    new_password = changes.get("new_password")
    if username is None and "avatar_url" not in changes and not new_password:
        raise InvalidInputError("No profile fields provided")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise UserNotFoundError("User not found")

    updates: dict[str, Any] = {}

    if username is not None:
        cleaned = username.strip()
        if not cleaned:
            raise InvalidInputError("Username cannot be empty")
        if cleaned != user.username:
            taken = (
                db.query(User)
                .filter(User.username == cleaned, User.id != user_id)
                .first()
            )
            if taken is not None:
                raise UsernameTakenError("Username is already taken")
            updates["username"] = cleaned

    if "avatar_url" in changes and changes["avatar_url"] != user.avatar_url:
        updates["avatar_url"] = changes["avatar_url"]

    if new_password:
        current_password = changes.get("current_password")
        if not current_password:
            raise InvalidInputError("Current password is required to set a new one")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise InvalidInputError(
                f"New password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if not verify_password(current_password, user.password_hash):
            raise InvalidInputError("Current password is incorrect")
        updates["password_hash"] = hash_password(new_password)

    if not updates:
        raise InvalidInputError("No changes detected")

    for field, value in updates.items():
        setattr(user, field, value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return build_profile_dict(user)
