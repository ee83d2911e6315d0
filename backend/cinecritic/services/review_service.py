"""
Movie review business logic.

A user writes at most one review per movie. Writing the
CRITIC_PROMOTION_THRESHOLD-th review promotes the author to CRITIC in the
same transaction; updates and deletes never change the role.
"""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cinecritic.core.errors import DuplicateKeyError, ForbiddenError, InvalidInputError, NotFoundError
from cinecritic.db.catalog_store import count_reviews_by_user, find_movie_by_id
from cinecritic.db.models import Movie, Review, User, UserRoleEnum
from cinecritic.services.catalog_reconciler import MovieNotFoundError

logger = logging.getLogger(__name__)

CRITIC_PROMOTION_THRESHOLD = 5
MIN_SCORE = 1
MAX_SCORE = 10


class ReviewNotFoundError(NotFoundError):
    """Raised when a review does not exist."""


class ReviewAuthorNotFoundError(NotFoundError):
    """Raised when the reviewing user no longer exists."""


class NotReviewOwnerError(ForbiddenError):
    """Raised when a user tries to modify another user's review."""


class DuplicateReviewError(DuplicateKeyError):
    """Raised when a user already reviewed this movie."""


def validate_score(score: Any) -> int:
    if isinstance(score, bool) or not isinstance(score, int) or not MIN_SCORE <= score <= MAX_SCORE:
        raise InvalidInputError(f"Score must be an integer between {MIN_SCORE} and {MAX_SCORE}")
    return score


def _author_dict(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "role": UserRoleEnum.value_of(user.role),
        "avatar_url": user.avatar_url,
    }


def _build_review_dict(review: Review, user: User) -> dict:
    return {
        "id": review.id,
        "user_id": review.user_id,
        "movie_id": review.movie_id,
        "score": review.score,
        "comment_text": review.comment_text,
        "created_at": review.created_at,
        "updated_at": review.updated_at,
        "user": _author_dict(user),
    }


def _build_own_review_dict(review: Review, movie: Movie) -> dict:
    return {
        "id": review.id,
        "movie_id": review.movie_id,
        "score": review.score,
        "comment_text": review.comment_text,
        "created_at": review.created_at,
        "updated_at": review.updated_at,
        "movie": {
            "id": movie.id,
            "title": movie.title,
            "poster_url": movie.poster_url,
        },
    }


def _load_owned_review(db: Session, user_id: UUID, review_id: UUID, action: str) -> Review:
    review = db.query(Review).filter(Review.id == review_id).first()
    if review is None:
        raise ReviewNotFoundError(f"Review {review_id} not found")
    if review.user_id != user_id:
        raise NotReviewOwnerError(f"You can only {action} your own reviews")
    return review


# ── Reads ─────────────────────────────────────────────────────────────────────

def get_reviews_for_movie(db: Session, movie_id: UUID) -> list[dict]:
    """All reviews of a movie, newest first, with author summary."""
    if find_movie_by_id(db, movie_id) is None:
        raise MovieNotFoundError(f"Movie {movie_id} not found")

    rows = (
        db.query(Review, User)
        .join(User, Review.user_id == User.id)
        .filter(Review.movie_id == movie_id)
        .order_by(Review.created_at.desc())
        .all()
    )
    return [_build_review_dict(review, user) for review, user in rows]


def get_reviews_by_user(db: Session, user_id: UUID, limit: int = 100) -> list[dict]:
    """A user's own reviews, newest first, with a movie summary."""
    rows = (
        db.query(Review, Movie)
        .join(Movie, Review.movie_id == Movie.id)
        .filter(Review.user_id == user_id)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .all()
    )
    return [_build_own_review_dict(review, movie) for review, movie in rows]


# ── Writes ────────────────────────────────────────────────────────────────────

def create_review(
    db: Session,
    user_id: UUID,
    movie_id: UUID,
    score: Any,
    comment_text: str | None = None,
) -> dict:
    """
    Create a review and apply critic promotion.

    Returns {"review": ..., "total_reviews": int, "promoted_to_critic": bool}.
    The review count is read live after the insert is flushed, and the
    insert plus any role change commit together.
    """
    score = validate_score(score)

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise ReviewAuthorNotFoundError(f"User {user_id} not found")

    if find_movie_by_id(db, movie_id) is None:
        raise MovieNotFoundError(f"Movie {movie_id} not found")

    existing = (
        db.query(Review)
        .filter(Review.user_id == user_id, Review.movie_id == movie_id)
        .first()
    )
    if existing is not None:
        raise DuplicateReviewError("You have already reviewed this movie")

    review = Review(
        user_id=user_id,
        movie_id=movie_id,
        score=score,
        comment_text=comment_text,
    )
    db.add(review)

    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        error_text = str(exc.orig).lower()
        if "uq_reviews_user_movie" in error_text or "unique" in error_text:
            raise DuplicateReviewError("You have already reviewed this movie") from exc
        raise InvalidInputError("Review could not be saved") from exc

    total_reviews = count_reviews_by_user(db, user_id)
    promoted = False
    if total_reviews >= CRITIC_PROMOTION_THRESHOLD and user.role != UserRoleEnum.CRITIC:
        user.role = UserRoleEnum.CRITIC
        db.add(user)
        promoted = True

    db.commit()
    db.refresh(review)
    db.refresh(user)

    if promoted:
        logger.info(f"User {user_id} promoted to CRITIC after {total_reviews} reviews")

    return {
        "review": _build_review_dict(review, user),
        "total_reviews": total_reviews,
        "promoted_to_critic": promoted,
    }


def update_review(
    db: Session,
    user_id: UUID,
    review_id: UUID,
    changes: dict[str, Any],
) -> dict:
    """
    Apply *changes* (score and/or comment_text) to the caller's review.

    A None score means "leave unchanged"; comment_text may be set to None.
    """
    if changes.get("score") is not None:
        validate_score(changes["score"])

    review = _load_owned_review(db, user_id, review_id, "update")

    if changes.get("score") is not None:
        review.score = changes["score"]
    if "comment_text" in changes:
        review.comment_text = changes["comment_text"]

    db.add(review)
    db.commit()
    db.refresh(review)

    user = db.query(User).filter(User.id == review.user_id).first()
    return _build_review_dict(review, user)


def delete_review(db: Session, user_id: UUID, review_id: UUID) -> bool:
    """Delete a review. Only the owner can delete."""
    review = _load_owned_review(db, user_id, review_id, "delete")
    db.delete(review)
    db.commit()
    return True
