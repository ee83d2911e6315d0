"""
Auth API — /auth
─────────────────
Endpoints:
  POST /auth/register — Create account, return JWT + profile (201)
  POST /auth/login    — Authenticate, return JWT + profile
"""
from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from cinecritic.db.session import get_db
from cinecritic.schemas.auth import RegisterRequest, TokenResponse
from cinecritic.schemas.common import ApiResponse
from cinecritic.services.auth_service import (
    authenticate_user,
    create_user,
    issue_access_token,
)
from cinecritic.services.user_service import build_profile_dict

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[TokenResponse],
    status_code=status.HTTP_201_CREATED,
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> dict:
    """Returns 409 if the username or email already exists."""
    user = create_user(
        db,
        username=payload.username,
        email=payload.email,
        password=payload.password,
    )
    return {
        "success": True,
        "message": "Account created",
        "data": {
            "access_token": issue_access_token(user),
            "user": build_profile_dict(user),
        },
    }


@router.post("/login", response_model=ApiResponse[TokenResponse])
def login(
    form: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> dict:
    """
    OAuth2 password form; *username* may also be the account email.
    """
    user = authenticate_user(db, login=form.username, password=form.password)
    return {
        "success": True,
        "data": {
            "access_token": issue_access_token(user),
            "user": build_profile_dict(user),
        },
    }
