"""
Auth business logic — registration, login, token issuance.

All DB writes go through this layer (not directly in routes).
"""
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cinecritic.core.errors import DuplicateKeyError, UnauthorizedError
from cinecritic.core.security import create_access_token, hash_password, verify_password
from cinecritic.db.models import User, UserRoleEnum


# ── Custom exceptions ────────────────────────────────────────────────────────


class DuplicateUserError(DuplicateKeyError):
    """Raised when registration conflicts with an existing username or email."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"A user with that {field} already exists")


class InvalidCredentialsError(UnauthorizedError):
    """Raised when login credentials do not match."""


# ── Service functions ────────────────────────────────────────────────────────


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
) -> User:
    """
    Register a new USER-role account.

    Username is trimmed (case kept), email trimmed and lower-cased.
    Raises DuplicateUserError on unique-constraint violation.
    """
    user = User(
        username=username.strip(),
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=UserRoleEnum.USER,
    )

    db.add(user)

    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        error_str = str(exc.orig).lower()
        if "username" in error_str:
            raise DuplicateUserError("username") from exc
        if "email" in error_str:
            raise DuplicateUserError("email") from exc
        raise DuplicateUserError("username or email") from exc

    db.commit()
    db.refresh(user)
    return user


def authenticate_user(db: Session, login: str, password: str) -> User:
    """
    Verify credentials; *login* may be the username or the email.

    Raises InvalidCredentialsError on any mismatch.
    """
    cleaned = login.strip()
    user = (
        db.query(User)
        .filter((User.username == cleaned) | (User.email == cleaned.lower()))
        .first()
    )
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentialsError("Incorrect username or password")
    return user


def issue_access_token(user: User) -> str:
    return create_access_token(subject=str(user.id))


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    return db.query(User).filter(User.id == user_id).first()
