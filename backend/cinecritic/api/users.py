"""
Users API — /users
──────────────────
Endpoints (all require a bearer token):
  GET /users/me           — Current profile
  PUT /users/me           — Update username / avatar / password
  GET /users/me/reviews   — Reviews written by the current user
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cinecritic.db.models import User
from cinecritic.db.session import get_db
from cinecritic.deps.auth import get_current_user
from cinecritic.schemas.auth import UpdateProfileRequest, UserProfileResponse
from cinecritic.schemas.common import ApiResponse
from cinecritic.schemas.reviews import OwnReviewResponse
from cinecritic.services.review_service import get_reviews_by_user
from cinecritic.services.user_service import get_profile, update_profile

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserProfileResponse])
def get_me(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"success": True, "data": get_profile(db, current_user.id)}


@router.put("/me", response_model=ApiResponse[UserProfileResponse])
def update_me(
    payload: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    profile = update_profile(db, current_user.id, payload.model_dump(exclude_unset=True))
    return {"success": True, "message": "Profile updated", "data": profile}


@router.get("/me/reviews", response_model=ApiResponse[list[OwnReviewResponse]])
def list_my_reviews(
    limit: int = Query(100, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    reviews = get_reviews_by_user(db, current_user.id, limit=limit)
    return {"success": True, "data": reviews, "meta": {"count": len(reviews)}}
