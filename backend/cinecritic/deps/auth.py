"""
Auth dependency — shared across all protected endpoints.

Usage in any route:
    from cinecritic.deps.auth import get_current_user
    from cinecritic.db.models import User

    @router.get("/protected")
    def protected(user: User = Depends(get_current_user)):
        ...
"""
from uuid import UUID

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from cinecritic.core.config import settings
from cinecritic.core.errors import UnauthorizedError
from cinecritic.core.security import decode_access_token
from cinecritic.db.models import User
from cinecritic.db.session import get_db
from cinecritic.services.auth_service import get_user_by_id

oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_PREFIX}/auth/login",
    auto_error=False,
)


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Decode the bearer JWT and return the corresponding User.

    Raises UnauthorizedError on any failure (missing/invalid/expired token,
    unknown user); only the message differs.
    """
    if not token:
        raise UnauthorizedError("No authentication token provided")

    sub = decode_access_token(token)

    try:
        user_id = UUID(sub)
    except (ValueError, AttributeError) as exc:
        raise UnauthorizedError("Invalid token") from exc

    user = get_user_by_id(db, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    return user
