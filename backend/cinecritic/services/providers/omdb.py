"""
OMDb adapter (primary catalog source).

OMDb is keyed by IMDb title ids ("tt0111161") and has no trending endpoint.
Trending is approximated by searching a fixed list of well-known franchise
terms and hydrating the first few hits of each, one request at a time.

External ids:
  1. "tt0111161" -> 111161 (prefix stripped, must be a positive integer)
  2. otherwise a deterministic 32-bit hash of title + year, floored at
     FALLBACK_ID_FLOOR so it never lands on a small real IMDb number.
"""
import logging
import re
from datetime import date, datetime

from cinecritic.core.config import OMDB_MIN_REQUEST_INTERVAL_SECONDS
from cinecritic.core.errors import ProviderNotConfiguredError, ProviderUnavailableError
from cinecritic.schemas.providers import (
    NormalizedMovie,
    OmdbMovieRecord,
    OmdbSearchHit,
    OmdbSearchResponse,
)
from cinecritic.services.providers.base import BaseMovieProvider

logger = logging.getLogger(__name__)

IMDB_TITLE_PREFIX = "tt"
FALLBACK_ID_FLOOR = 1_000_000
MAX_ACTORS = 5
SEARCH_DETAIL_LIMIT = 10

TRENDING_TARGET = 20
TRENDING_HITS_PER_TERM = 3
TRENDING_SEARCH_TERMS: tuple[str, ...] = (
    "avengers",
    "batman",
    "spider",
    "star wars",
    "harry potter",
    "inception",
    "interstellar",
    "matrix",
    "titanic",
    "avatar",
    "joker",
    "toy story",
    "frozen",
    "finding nemo",
    "cars",
    "iron man",
    "captain america",
    "thor",
    "black panther",
    "wonder woman",
)

_NATIVE_ID_RE = re.compile(r"^(?:[A-Za-z]{2})?(\d+)$")
_MISSING = "N/A"


# ── Identifier helpers ────────────────────────────────────────────────────────

def title_year_hash(title: str, year: str) -> int:
    """
    Deterministic positive id for records without a usable IMDb number.

    32-bit signed string hash (h = h * 31 + unit over UTF-16 code units),
    absolute value, floored at FALLBACK_ID_FLOOR.
    """
    encoded = f"{title}{year}".encode("utf-16-le")
    h = 0
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return max(abs(h), FALLBACK_ID_FLOOR)


def derive_external_id(imdb_id: str | None, title: str | None, year: str | None) -> int:
    if imdb_id:
        match = _NATIVE_ID_RE.match(imdb_id.strip())
        if match and int(match.group(1)) > 0:
            return int(match.group(1))
    return title_year_hash(title or "", year or "")


# ── Field helpers ─────────────────────────────────────────────────────────────

def _present(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned or cleaned == _MISSING:
        return None
    return cleaned


def _split_list(value: str | None) -> list[str]:
    present = _present(value)
    if present is None:
        return []
    return [item.strip() for item in present.split(",") if item.strip()]


def _parse_released(value: str | None) -> date | None:
    """OMDb dates look like "16 Jul 2010"."""
    present = _present(value)
    if present is None:
        return None
    try:
        return datetime.strptime(present, "%d %b %Y").date()
    except ValueError:
        logger.debug(f"Unparseable OMDb release date: {present!r}")
        return None


def normalize_omdb_record(record: OmdbMovieRecord) -> NormalizedMovie | None:
    """Map an OMDb detail payload onto NormalizedMovie. None if untitled."""
    title = _present(record.title)
    if title is None:
        return None

    return NormalizedMovie(
        external_api_id=derive_external_id(record.imdb_id, record.title, record.year),
        title=title,
        synopsis=_present(record.plot),
        poster_url=_present(record.poster),
        release_date=_parse_released(record.released),
        genres=_split_list(record.genre),
        actors=_split_list(record.actors)[:MAX_ACTORS],
        source="omdb",
    )


# ── Adapter ───────────────────────────────────────────────────────────────────

class OmdbProvider(BaseMovieProvider):
    name = "OMDb"
    default_interval_seconds = OMDB_MIN_REQUEST_INTERVAL_SECONDS

    def _auth_params(self) -> dict[str, str]:
        return {"apikey": self.config.api_key}

    async def find_by_id(self, native_id: str | int) -> NormalizedMovie | None:
        imdb_id = str(native_id).strip()
        if not imdb_id.lower().startswith(IMDB_TITLE_PREFIX):
            return None
        return await self._absorb("lookup", self._fetch_details(imdb_id), None)

    async def search(self, query: str) -> list[NormalizedMovie]:
        cleaned = query.strip()
        if not cleaned:
            return []
        return await self._absorb("search", self._search_with_details(cleaned), [])

    async def trending(self) -> list[NormalizedMovie]:
        return await self._absorb("trending", self._collect_trending(), [])

    # ── Requests ─────────────────────────────────────────────────────────────

    async def _search_hits(self, query: str) -> list[OmdbSearchHit]:
        payload = await self._get_json("/", {"s": query, "type": "movie", "page": 1})
        if payload is None:
            return []
        parsed = self._parse(OmdbSearchResponse, payload)
        if parsed.response != "True":
            logger.debug(f"OMDb search {query!r} returned nothing: {parsed.error}")
            return []
        return parsed.search

    async def _fetch_details(self, imdb_id: str) -> NormalizedMovie | None:
        payload = await self._get_json("/", {"i": imdb_id, "plot": "full"})
        if payload is None:
            return None
        record = self._parse(OmdbMovieRecord, payload)
        if record.response != "True":
            logger.info(f"OMDb has no movie {imdb_id}: {record.error}")
            return None
        return normalize_omdb_record(record)

    async def _search_with_details(self, query: str) -> list[NormalizedMovie]:
        hits = await self._search_hits(query)
        movies: list[NormalizedMovie] = []
        for hit in hits[:SEARCH_DETAIL_LIMIT]:
            if not hit.imdb_id:
                continue
            try:
                movie = await self._fetch_details(hit.imdb_id)
            except ProviderNotConfiguredError:
                raise
            except ProviderUnavailableError as exc:
                logger.warning(f"OMDb details for {hit.imdb_id} failed: {exc}")
                continue
            if movie is not None:
                movies.append(movie)
        return movies

    async def _collect_trending(self) -> list[NormalizedMovie]:
        """
        Walk TRENDING_SEARCH_TERMS in order, hydrating up to
        TRENDING_HITS_PER_TERM hits each, until TRENDING_TARGET unique movies
        are collected. A failing term or detail fetch is skipped.
        """
        collected: list[NormalizedMovie] = []
        seen_native_ids: set[str] = set()
        seen_external_ids: set[int] = set()

        for term in TRENDING_SEARCH_TERMS:
            try:
                hits = await self._search_hits(term)
            except ProviderNotConfiguredError:
                raise
            except ProviderUnavailableError as exc:
                logger.warning(f"OMDb trending term {term!r} failed: {exc}")
                continue

            for hit in hits[:TRENDING_HITS_PER_TERM]:
                if not hit.imdb_id or hit.imdb_id in seen_native_ids:
                    continue
                seen_native_ids.add(hit.imdb_id)

                try:
                    movie = await self._fetch_details(hit.imdb_id)
                except ProviderNotConfiguredError:
                    raise
                except ProviderUnavailableError as exc:
                    logger.warning(f"OMDb details for {hit.imdb_id} failed: {exc}")
                    continue

                if movie is None or movie.external_api_id in seen_external_ids:
                    continue
                seen_external_ids.add(movie.external_api_id)
                collected.append(movie)
                if len(collected) >= TRENDING_TARGET:
                    return collected

        logger.info(f"OMDb trending collected {len(collected)} movies")
        return collected
