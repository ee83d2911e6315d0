"""
Movie response schemas.
"""
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MovieResponse(BaseModel):
    """A catalog movie with its derived rating snapshot."""

    id: UUID
    external_api_id: int | None = None
    title: str
    synopsis: str | None = None
    poster_url: str | None = None
    release_date: date | None = None
    genres: list[str] = Field(default_factory=list)
    actors: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    critic_rating: int = 0
    audience_rating: int = 0
    critic_reviews_count: int = 0
    audience_reviews_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class MovieSummary(BaseModel):
    """Minimal movie fields embedded in a user's review list."""

    id: UUID
    title: str
    poster_url: str | None = None
