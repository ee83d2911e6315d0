"""
Movies API — /movies
────────────────────
Endpoints:
  GET  /movies                      — Filtered / sorted catalog listing
  GET  /movies/trending             — Newest catalog entries
  GET  /movies/{movie_id}           — One movie (local UUID or external id)
  GET  /movies/{movie_id}/reviews   — Reviews of a movie
  POST /movies/{movie_id}/reviews   — Review a movie (auth)

Listing and trending may backfill the catalog from OMDb / TMDB when it is
nearly empty; see services/movie_service.py for the exact policy.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cinecritic.db.models import User
from cinecritic.db.session import get_db
from cinecritic.deps.auth import get_current_user
from cinecritic.deps.providers import get_catalog_sources
from cinecritic.schemas.common import ApiResponse
from cinecritic.schemas.movies import MovieResponse
from cinecritic.schemas.reviews import CreateReviewRequest, ReviewResponse
from cinecritic.services.catalog_reconciler import CatalogSources
from cinecritic.services.movie_service import (
    LISTING_PAGE_SIZE,
    MAX_PAGE_SIZE,
    get_movie,
    get_trending,
    list_movies,
)
from cinecritic.services.review_service import create_review, get_reviews_for_movie

router = APIRouter()


@router.get("", response_model=ApiResponse[list[MovieResponse]])
async def list_movies_endpoint(
    search: str | None = Query(None, description="Case-insensitive title substring"),
    genre: list[str] | None = Query(None, description="Repeatable and/or comma-separated"),
    sort: str | None = Query(
        None,
        description="date | release_date | critic_rating | rating | audience_rating",
    ),
    limit: int = Query(LISTING_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    sources: CatalogSources = Depends(get_catalog_sources),
) -> dict:
    movies = await list_movies(db, sources, search=search, genres=genre, sort=sort, limit=limit)
    return {"success": True, "data": movies, "meta": {"count": len(movies)}}


@router.get("/trending", response_model=ApiResponse[list[MovieResponse]])
async def trending_endpoint(
    db: Session = Depends(get_db),
    sources: CatalogSources = Depends(get_catalog_sources),
) -> dict:
    movies = await get_trending(db, sources)
    return {"success": True, "data": movies, "meta": {"count": len(movies)}}


@router.get("/{movie_id}", response_model=ApiResponse[MovieResponse])
async def get_movie_endpoint(
    movie_id: str,
    db: Session = Depends(get_db),
    sources: CatalogSources = Depends(get_catalog_sources),
) -> dict:
    """
    Local UUID first, then external id ("111161" / "tt0111161"); unknown ids
    are looked up at the providers and stored.
    """
    return {"success": True, "data": await get_movie(db, sources, movie_id)}


@router.get("/{movie_id}/reviews", response_model=ApiResponse[list[ReviewResponse]])
def list_movie_reviews(
    movie_id: UUID,
    db: Session = Depends(get_db),
) -> dict:
    reviews = get_reviews_for_movie(db, movie_id)
    return {"success": True, "data": reviews, "meta": {"count": len(reviews)}}


@router.post(
    "/{movie_id}/reviews",
    response_model=ApiResponse[ReviewResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_movie_review(
    movie_id: UUID,
    payload: CreateReviewRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    result = create_review(
        db,
        current_user.id,
        movie_id,
        payload.score,
        payload.comment_text,
    )
    return {
        "success": True,
        "message": "Review created",
        "data": result["review"],
        "meta": {
            "total_reviews": result["total_reviews"],
            "promoted_to_critic": result["promoted_to_critic"],
        },
    }
