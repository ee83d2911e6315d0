"""
Reviews API — /reviews
──────────────────────
Owner-only edits of an existing review.

Endpoints:
  PUT    /reviews/{review_id}   — Update own review
  DELETE /reviews/{review_id}   — Delete own review

Creating and listing reviews hangs off /movies/{movie_id}/reviews.
"""
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cinecritic.db.models import User
from cinecritic.db.session import get_db
from cinecritic.deps.auth import get_current_user
from cinecritic.schemas.common import ApiResponse
from cinecritic.schemas.reviews import ReviewResponse, UpdateReviewRequest
from cinecritic.services.review_service import delete_review, update_review

router = APIRouter()


@router.put("/{review_id}", response_model=ApiResponse[ReviewResponse])
def update_review_endpoint(
    review_id: UUID,
    payload: UpdateReviewRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    review = update_review(db, current_user.id, review_id, changes)
    return {"success": True, "message": "Review updated", "data": review}


@router.delete("/{review_id}", response_model=ApiResponse[None])
def delete_review_endpoint(
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    delete_review(db, current_user.id, review_id)
    return {"success": True, "message": "Review deleted"}
