"""
Review request/response schemas.

Score range checks live in review_service so that every caller gets the
same message; the request models only pin down types.
"""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from cinecritic.schemas.movies import MovieSummary


class CreateReviewRequest(BaseModel):
    score: int | None = None
    comment_text: str | None = Field(default=None, max_length=5000)


class UpdateReviewRequest(BaseModel):
    """Partial update; omitted fields stay as they are."""

    score: int | None = None
    comment_text: str | None = Field(default=None, max_length=5000)


class ReviewAuthor(BaseModel):
    id: UUID
    username: str
    role: str
    avatar_url: str | None = None


class ReviewResponse(BaseModel):
    """A review as shown on a movie page."""

    id: UUID
    user_id: UUID
    movie_id: UUID
    score: int
    comment_text: str | None = None
    created_at: datetime
    updated_at: datetime
    user: ReviewAuthor


class OwnReviewResponse(BaseModel):
    """A review as shown on the author's own profile."""

    id: UUID
    movie_id: UUID
    score: int
    comment_text: str | None = None
    created_at: datetime
    updated_at: datetime
    movie: MovieSummary
