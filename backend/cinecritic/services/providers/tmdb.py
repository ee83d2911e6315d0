"""
TMDB adapter (secondary catalog source)
───────────────────────────────────────
Wraps the TMDB v3 REST API.

The native numeric id is used as external_api_id as-is. List endpoints
only carry numeric genre codes; known codes are translated through
TMDB_GENRE_MAP and unknown ones are kept as their decimal string. Cast
needs a separate credits call, so actors are always empty.
"""
import logging
from datetime import date
from typing import Any

import httpx

from cinecritic.core.errors import ProviderUnavailableError
from cinecritic.schemas.providers import NormalizedMovie, TmdbListResponse, TmdbMovieRecord
from cinecritic.services.providers.base import BaseMovieProvider, ProviderConfig, RequestPacer

logger = logging.getLogger(__name__)

TMDB_GENRE_MAP: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}


def _genre_names(record: TmdbMovieRecord) -> list[str]:
    if record.genres:
        return [g.name or TMDB_GENRE_MAP.get(g.id, str(g.id)) for g in record.genres]
    return [TMDB_GENRE_MAP.get(code, str(code)) for code in record.genre_ids]


def _parse_release_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


class TmdbProvider(BaseMovieProvider):
    """Async TMDB v3 adapter; list and detail rows both map to NormalizedMovie."""

    name = "TMDB"

    def __init__(
        self,
        config: ProviderConfig,
        pacer: RequestPacer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        image_base_url: str = "https://image.tmdb.org/t/p/w500",
    ) -> None:
        super().__init__(config, pacer=pacer, transport=transport)
        self.image_base_url = image_base_url

    def _auth_params(self) -> dict[str, str]:
        return {"api_key": self.config.api_key, "language": "en-US"}

    async def find_by_id(self, native_id: str | int) -> NormalizedMovie | None:
        try:
            tmdb_id = int(native_id)
        except (TypeError, ValueError):
            return None
        if tmdb_id <= 0:
            return None
        return await self._absorb("lookup", self._fetch_movie(tmdb_id), None)

    async def search(self, query: str) -> list[NormalizedMovie]:
        cleaned = query.strip()
        if not cleaned:
            return []
        params = {"query": cleaned, "page": 1, "include_adult": "false"}
        return await self._absorb("search", self._fetch_list("/search/movie", params), [])

    async def trending(self) -> list[NormalizedMovie]:
        return await self._absorb("trending", self._fetch_list("/trending/movie/day", {}), [])

    # ── Mapping ──────────────────────────────────────────────────────────────

    def _format_poster_url(self, path: str | None) -> str | None:
        """Prefix the TMDB image base URL onto a poster path."""
        if not path:
            return None
        return f"{self.image_base_url}{path}"

    def normalize(self, record: TmdbMovieRecord) -> NormalizedMovie | None:
        """Map a TMDB movie row onto NormalizedMovie. None if untitled."""
        title = (record.title or "").strip()
        if not title:
            return None
        return NormalizedMovie(
            external_api_id=record.id,
            title=title,
            synopsis=record.overview or None,
            poster_url=self._format_poster_url(record.poster_path),
            release_date=_parse_release_date(record.release_date),
            genres=_genre_names(record),
            actors=[],
            source="tmdb",
        )

    # ── Requests ─────────────────────────────────────────────────────────────

    async def _fetch_movie(self, tmdb_id: int) -> NormalizedMovie | None:
        payload = await self._get_json(f"/movie/{tmdb_id}", {})
        if payload is None:
            logger.info(f"TMDB has no movie {tmdb_id}")
            return None
        return self.normalize(self._parse(TmdbMovieRecord, payload))

    async def _fetch_list(self, path: str, params: dict[str, Any]) -> list[NormalizedMovie]:
        payload = await self._get_json(path, params)
        if payload is None:
            return []

        movies: list[NormalizedMovie] = []
        for raw in self._parse(TmdbListResponse, payload).results:
            if not isinstance(raw, dict) or not raw.get("id"):
                continue
            try:
                record = self._parse(TmdbMovieRecord, raw)
            except ProviderUnavailableError:
                logger.debug(f"Skipping malformed TMDB row id={raw.get('id')}")
                continue
            movie = self.normalize(record)
            if movie is not None:
                movies.append(movie)
        return movies
