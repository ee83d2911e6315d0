"""
Movie listing pipeline — local query, conditional backfill, ratings,
genre filter, sort, truncation.

Backfill policy:
  - /movies reconciles from the providers only when fewer than
    LISTING_FRESHNESS_THRESHOLD rows exist AND no search text or genre
    filter is active. Filtered queries never call out, otherwise every new
    filter combination would cost a provider round-trip.
  - /movies/trending reconciles when fewer than TRENDING_FRESHNESS_THRESHOLD
    rows exist.
"""
import logging
import re
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from cinecritic.db.catalog_store import (
    CANDIDATE_CAP,
    ORDER_CREATED,
    ORDER_RELEASE_DATE,
    find_movie_by_external_id,
    find_movie_by_id,
    find_movies,
)
from cinecritic.db.models import Movie
from cinecritic.services.catalog_reconciler import (
    CatalogSources,
    MovieNotFoundError,
    refresh_catalog,
    resolve_external_movie,
)
from cinecritic.services.movie_filters import (
    SORT_RELEASE_DATE,
    filter_by_genres,
    parse_genre_params,
    sort_movies,
)
from cinecritic.services.rating_service import (
    RatingSnapshot,
    compute_ratings,
    compute_ratings_for_movies,
)

logger = logging.getLogger(__name__)

LISTING_FRESHNESS_THRESHOLD = 20
TRENDING_FRESHNESS_THRESHOLD = 10
LISTING_PAGE_SIZE = 50
TRENDING_PAGE_SIZE = 20
MAX_PAGE_SIZE = CANDIDATE_CAP

# "111161" or "tt0111161"; both address external_api_id 111161
_EXTERNAL_ID_RE = re.compile(r"^(?:[A-Za-z]{2})?(\d+)$")


def build_movie_dict(movie: Movie, ratings: RatingSnapshot) -> dict[str, Any]:
    return {
        "id": movie.id,
        "external_api_id": movie.external_api_id,
        "title": movie.title,
        "synopsis": movie.synopsis,
        "poster_url": movie.poster_url,
        "release_date": movie.release_date,
        "genres": list(movie.genres or []),
        "actors": list(movie.actors or []),
        "created_at": movie.created_at,
        "updated_at": movie.updated_at,
        **ratings.as_dict(),
    }


def annotate_with_ratings(db: Session, movies: list[Movie]) -> list[dict[str, Any]]:
    snapshots = compute_ratings_for_movies(db, [movie.id for movie in movies])
    return [build_movie_dict(movie, snapshots[movie.id]) for movie in movies]


def _order_for(sort: str | None) -> str:
    if sort and sort.strip().lower() in SORT_RELEASE_DATE:
        return ORDER_RELEASE_DATE
    return ORDER_CREATED


# ── Listing ───────────────────────────────────────────────────────────────────

async def list_movies(
    db: Session,
    sources: CatalogSources,
    search: str | None = None,
    genres: list[str] | str | None = None,
    sort: str | None = None,
    limit: int = LISTING_PAGE_SIZE,
) -> list[dict[str, Any]]:
    """
    Filtered, rating-annotated, sorted movie list.

    Steps:
      1. Candidates from the store (title substring filter, capped at 100).
      2. Backfill from providers if the catalog looks empty and no filter is set.
      3. Annotate ratings, filter by genre, sort, truncate to *limit*.
    """
    search_text = (search or "").strip() or None
    genre_tokens = parse_genre_params(genres)
    order_by = _order_for(sort)
    limit = max(1, min(limit, MAX_PAGE_SIZE))

    movies = find_movies(db, text_filter=search_text, order_by=order_by)

    if len(movies) < LISTING_FRESHNESS_THRESHOLD and not search_text and not genre_tokens:
        logger.info(
            f"Only {len(movies)} local movies (< {LISTING_FRESHNESS_THRESHOLD}); "
            "backfilling catalog"
        )
        reconciled = await refresh_catalog(db, sources)
        if reconciled:
            movies = find_movies(db, text_filter=search_text, order_by=order_by)

    items = annotate_with_ratings(db, movies)
    items = filter_by_genres(items, genre_tokens)
    items = sort_movies(items, sort)
    return items[:limit]


async def get_trending(db: Session, sources: CatalogSources) -> list[dict[str, Any]]:
    """Newest local movies, backfilled when fewer than 10 exist."""
    movies = find_movies(db, order_by=ORDER_CREATED, limit=TRENDING_PAGE_SIZE)

    if len(movies) < TRENDING_FRESHNESS_THRESHOLD:
        logger.info(
            f"Only {len(movies)} local movies for trending "
            f"(< {TRENDING_FRESHNESS_THRESHOLD}); backfilling catalog"
        )
        reconciled = await refresh_catalog(db, sources)
        if reconciled:
            movies = find_movies(db, order_by=ORDER_CREATED, limit=TRENDING_PAGE_SIZE)

    return annotate_with_ratings(db, movies)[:TRENDING_PAGE_SIZE]


# ── Single movie ──────────────────────────────────────────────────────────────

def _find_local(db: Session, identifier: str) -> Movie | None:
    try:
        movie = find_movie_by_id(db, UUID(identifier))
    except ValueError:
        movie = None
    if movie is None:
        match = _EXTERNAL_ID_RE.match(identifier)
        if match:
            movie = find_movie_by_external_id(db, int(match.group(1)))
    return movie


async def get_movie(db: Session, sources: CatalogSources, identifier: str) -> dict[str, Any]:
    """
    Resolve a movie by local UUID, then external id, then at the providers.

    Raises MovieNotFoundError when nothing matches anywhere.
    """
    ident = identifier.strip()
    movie = _find_local(db, ident)
    if movie is None:
        movie = await resolve_external_movie(db, sources, ident)
    if movie is None:
        raise MovieNotFoundError(f"Movie {identifier} not found")
    return build_movie_dict(movie, compute_ratings(db, movie.id))
