"""
Catalog storage operations used by the reconciler, the rating aggregator and
the movie pipeline.

Everything takes an explicit Session. Uniqueness violations surface as
DuplicateKeyError so callers can decide how to recover without poking at
driver-specific error text.
"""
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cinecritic.core.errors import DuplicateKeyError
from cinecritic.db.models import Movie, Review, User, UserRoleEnum

logger = logging.getLogger(__name__)

CANDIDATE_CAP = 100

ORDER_CREATED = "created_at"
ORDER_RELEASE_DATE = "release_date"


# ── Movies ────────────────────────────────────────────────────────────────────

def find_movie_by_id(db: Session, movie_id: UUID) -> Movie | None:
    return db.query(Movie).filter(Movie.id == movie_id).first()


def find_movie_by_external_id(db: Session, external_api_id: int) -> Movie | None:
    return db.query(Movie).filter(Movie.external_api_id == external_api_id).first()


def find_movie_by_title(db: Session, title: str) -> Movie | None:
    """Exact title match; oldest row wins when titles repeat."""
    return (
        db.query(Movie)
        .filter(Movie.title == title)
        .order_by(Movie.created_at.asc())
        .first()
    )


def find_movies(
    db: Session,
    text_filter: str | None = None,
    order_by: str = ORDER_CREATED,
    limit: int = CANDIDATE_CAP,
) -> list[Movie]:
    """
    Candidate query for listings.

    text_filter is a case-insensitive substring match on the title.
    order_by is ORDER_RELEASE_DATE (newest first, undated last) or anything
    else for newest-inserted first.
    """
    query = db.query(Movie)
    if text_filter:
        query = query.filter(Movie.title.ilike(f"%{text_filter.strip()}%"))

    if order_by == ORDER_RELEASE_DATE:
        query = query.order_by(
            Movie.release_date.desc().nulls_last(),
            Movie.created_at.desc(),
        )
    else:
        query = query.order_by(Movie.created_at.desc(), Movie.id.asc())

    return query.limit(limit).all()


def upsert_movie(
    db: Session,
    external_api_id: int,
    update_fields: dict[str, Any],
    insert_record: dict[str, Any],
) -> Movie:
    """
    Insert or refresh the movie keyed by *external_api_id* and commit.

    The read-then-write is not atomic: a concurrent request can insert the
    same key in between, in which case the unique constraint fires and
    DuplicateKeyError is raised after rolling back.
    """
    row = find_movie_by_external_id(db, external_api_id)
    if row is None:
        logger.debug(f"Inserting movie external_api_id={external_api_id}")
        row = Movie(**{**insert_record, "external_api_id": external_api_id})
        db.add(row)
    else:
        logger.debug(f"Refreshing movie {row.id} external_api_id={external_api_id}")
        for field, value in update_fields.items():
            setattr(row, field, value)
        # unchanged fields emit no UPDATE, so onupdate would never fire
        row.updated_at = datetime.now(timezone.utc)
        db.add(row)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateKeyError(
            f"Movie with external id {external_api_id} already exists"
        ) from exc

    db.refresh(row)
    return row


# ── Reviews ───────────────────────────────────────────────────────────────────

def find_review_rows_by_movie(
    db: Session,
    movie_id: UUID,
) -> list[tuple[int, UserRoleEnum]]:
    """(score, reviewer's current role) for every review of *movie_id*."""
    rows = (
        db.query(Review.score, User.role)
        .join(User, Review.user_id == User.id)
        .filter(Review.movie_id == movie_id)
        .all()
    )
    return [(score, role) for score, role in rows]


def find_review_rows_by_movies(
    db: Session,
    movie_ids: Sequence[UUID],
) -> list[tuple[UUID, int, UserRoleEnum]]:
    """Batched find_review_rows_by_movie: (movie_id, score, role) rows."""
    if not movie_ids:
        return []
    rows = (
        db.query(Review.movie_id, Review.score, User.role)
        .join(User, Review.user_id == User.id)
        .filter(Review.movie_id.in_(list(movie_ids)))
        .all()
    )
    return [(movie_id, score, role) for movie_id, score, role in rows]


def count_reviews_by_user(db: Session, user_id: UUID) -> int:
    return (
        db.query(func.count(Review.id))
        .filter(Review.user_id == user_id)
        .scalar()
    ) or 0
