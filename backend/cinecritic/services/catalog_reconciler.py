"""
Catalog reconciliation — merge provider records into the local movies table.

Flow:
  1. A listing / trending request finds too few local rows (movie_service).
  2. fetch_external_trending() asks the primary source, then the secondary
     one only if the primary came back empty. Sources are never mixed.
  3. reconcile() upserts each record by external_api_id, in provider order.

Uniqueness conflicts (two requests racing on the same new movie) are
recovered by looking the movie up locally. What happens when that lookup
misses depends on the mode:
  BULK   — catalog refresh; log and skip, availability first.
  SINGLE — resolving one requested movie; re-raise, correctness first.
"""
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Session

from cinecritic.core.errors import DuplicateKeyError, NotFoundError
from cinecritic.db.catalog_store import find_movie_by_external_id, find_movie_by_title, upsert_movie
from cinecritic.db.models import Movie
from cinecritic.schemas.providers import NormalizedMovie
from cinecritic.services.providers.base import MovieProvider

logger = logging.getLogger(__name__)

_PREFIXED_ID_RE = re.compile(r"^[A-Za-z]{2}\d+$")
_NUMERIC_ID_RE = re.compile(r"^\d+$")


class MovieNotFoundError(NotFoundError):
    """Raised when a movie cannot be found locally or at any provider."""


class ReconcileMode(str, Enum):
    BULK = "bulk"
    SINGLE = "single"


@dataclass(frozen=True)
class CatalogSources:
    """
    Providers in preference order.

    primary is addressed with prefixed ids ("tt0111161"), secondary with
    plain numeric ids.
    """

    primary: MovieProvider
    secondary: MovieProvider


# ── Reconciliation ────────────────────────────────────────────────────────────

def reconcile_movie(
    db: Session,
    external: NormalizedMovie,
    mode: ReconcileMode,
) -> Movie | None:
    """Merge one record. Returns the local row, or None when skipped in BULK mode."""
    if external.external_api_id is None:
        if mode is ReconcileMode.BULK:
            logger.debug(f"Skipping {external.title!r} from {external.source}: no external id")
            return None
        existing = find_movie_by_title(db, external.title)
        if existing is None:
            raise MovieNotFoundError(
                f"Movie {external.title!r} has no external id and no local match"
            )
        return existing

    try:
        return upsert_movie(
            db,
            external.external_api_id,
            external.update_fields(),
            external.insert_record(),
        )
    except DuplicateKeyError:
        existing = (
            find_movie_by_external_id(db, external.external_api_id)
            or find_movie_by_title(db, external.title)
        )
        if existing is not None:
            logger.info(
                f"Upsert conflict on external_api_id={external.external_api_id}; "
                f"using existing movie {existing.id}"
            )
            return existing
        if mode is ReconcileMode.SINGLE:
            raise
        logger.warning(
            f"Skipping {external.title!r} (external_api_id={external.external_api_id}): "
            "upsert conflict and no local match"
        )
        return None


def reconcile(
    db: Session,
    external_movies: Iterable[NormalizedMovie],
    mode: ReconcileMode = ReconcileMode.BULK,
) -> list[Movie]:
    """
    Merge a batch into local storage; returns the local rows in input order.

    Re-running with the same batch updates rows in place, so every external
    id maps to exactly one movie no matter how often this runs.
    """
    reconciled: list[Movie] = []
    seen_ids = set()
    for external in external_movies:
        row = reconcile_movie(db, external, mode)
        if row is None or row.id in seen_ids:
            continue
        seen_ids.add(row.id)
        reconciled.append(row)
    return reconciled


# ── Source selection ──────────────────────────────────────────────────────────

async def fetch_external_trending(sources: CatalogSources) -> list[NormalizedMovie]:
    """First non-empty trending list wins: primary, then secondary."""
    movies = await sources.primary.trending()
    if movies:
        logger.info(f"Trending backfill: {len(movies)} movies from {sources.primary.name}")
        return movies

    movies = await sources.secondary.trending()
    if movies:
        logger.info(f"Trending backfill: {len(movies)} movies from {sources.secondary.name}")
    else:
        logger.info("Trending backfill: no provider returned movies")
    return movies


async def refresh_catalog(db: Session, sources: CatalogSources) -> list[Movie]:
    """One bulk reconciliation pass from the preferred trending source."""
    external_movies = await fetch_external_trending(sources)
    if not external_movies:
        return []
    rows = reconcile(db, external_movies, ReconcileMode.BULK)
    logger.info(f"Catalog refresh reconciled {len(rows)}/{len(external_movies)} movies")
    return rows


async def resolve_external_movie(
    db: Session,
    sources: CatalogSources,
    identifier: str,
) -> Movie | None:
    """
    Look a movie up at the providers and reconcile it in SINGLE mode.

    "tt0111161" goes to the primary source only. A bare number is tried at
    the primary source as a zero-padded IMDb id, then at the secondary
    source as its native id. Anything else resolves to None.
    """
    ident = identifier.strip()
    external: NormalizedMovie | None = None

    if _PREFIXED_ID_RE.match(ident):
        external = await sources.primary.find_by_id(ident)
    elif _NUMERIC_ID_RE.match(ident):
        # zero-padded to the 7-digit IMDb form on purpose; a bare "tt" + digits
        # misses short numbers like 111161
        external = await sources.primary.find_by_id(f"tt{int(ident):07d}")
        if external is None:
            external = await sources.secondary.find_by_id(int(ident))

    if external is None:
        return None
    return reconcile_movie(db, external, ReconcileMode.SINGLE)
