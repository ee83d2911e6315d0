"""
Provider payload shapes and the canonical pre-persistence movie record.

Each recognised provider response is parsed into its own model; adapters
then map it onto NormalizedMovie. Unknown keys are ignored.
"""
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Fields refreshed on every reconciliation of an existing external id
REFRESHABLE_FIELDS = ("title", "synopsis", "poster_url", "genres", "actors", "release_date")


class NormalizedMovie(BaseModel):
    """Provider-independent movie record, ready for reconciliation."""

    external_api_id: int | None = None
    title: str
    synopsis: str | None = None
    poster_url: str | None = None
    release_date: date | None = None
    genres: list[str] = Field(default_factory=list)
    actors: list[str] = Field(default_factory=list)
    source: str

    def update_fields(self) -> dict[str, Any]:
        return {field: getattr(self, field) for field in REFRESHABLE_FIELDS}

    def insert_record(self) -> dict[str, Any]:
        return {**self.update_fields(), "external_api_id": self.external_api_id}


# ── OMDb ──────────────────────────────────────────────────────────────────────

class OmdbSearchHit(BaseModel):
    """One row of an OMDb ?s= search."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    imdb_id: str | None = Field(default=None, alias="imdbID")
    title: str | None = Field(default=None, alias="Title")
    year: str | None = Field(default=None, alias="Year")


class OmdbSearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    response: str = Field(default="False", alias="Response")
    error: str | None = Field(default=None, alias="Error")
    search: list[OmdbSearchHit] = Field(default_factory=list, alias="Search")


class OmdbMovieRecord(BaseModel):
    """OMDb ?i= detail payload. Absent values arrive as the string "N/A"."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    response: str = Field(default="False", alias="Response")
    error: str | None = Field(default=None, alias="Error")
    imdb_id: str | None = Field(default=None, alias="imdbID")
    title: str | None = Field(default=None, alias="Title")
    year: str | None = Field(default=None, alias="Year")
    released: str | None = Field(default=None, alias="Released")
    plot: str | None = Field(default=None, alias="Plot")
    poster: str | None = Field(default=None, alias="Poster")
    genre: str | None = Field(default=None, alias="Genre")
    actors: str | None = Field(default=None, alias="Actors")


# ── TMDB ──────────────────────────────────────────────────────────────────────

class TmdbGenre(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str | None = None


class TmdbMovieRecord(BaseModel):
    """
    TMDB movie row.

    List endpoints (/search, /trending) send genre_ids; the /movie/{id}
    detail endpoint sends genres as {id, name} objects instead.
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str | None = None
    overview: str | None = None
    release_date: str | None = None
    poster_path: str | None = None
    genre_ids: list[int] = Field(default_factory=list)
    genres: list[TmdbGenre] = Field(default_factory=list)


class TmdbListResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[dict[str, Any]] = Field(default_factory=list)
