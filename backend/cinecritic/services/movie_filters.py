"""
Pure helpers for the movie listing pipeline: genre matching and sorting.

Genre matching is deliberately loose. Request tokens and stored genres are
lower-cased and stripped of accents, each request token is expanded
through GENRE_SYNONYMS, and a stored genre matches when either string
contains the other. Stored genres come from two providers in English while
clients ask in Spanish, so "Acción" has to hit "Action & Adventure".
"""
import unicodedata
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

GENRE_SYNONYMS: dict[str, list[str]] = {
    "accion": ["accion", "action", "accion y aventura", "action & adventure", "adventure"],
    "drama": ["drama"],
    "ciencia ficcion": ["ciencia ficcion", "ciencia-ficcion", "scifi", "science fiction", "sci-fi"],
    "comedia": ["comedia", "comedy"],
    "terror": ["terror", "horror"],
    "romance": ["romance", "romantic"],
    "animacion": ["animacion", "animation", "animated"],
    "aventura": ["aventura", "adventure"],
}

SORT_RELEASE_DATE = {"date", "release_date"}
SORT_CRITIC = {"critic_rating", "rating"}
SORT_AUDIENCE = {"audience_rating"}

_OLDEST = datetime.min


def normalize_text(value: str) -> str:
    """Lower-case and drop combining marks: "Acción" -> "accion"."""
    decomposed = unicodedata.normalize("NFD", value.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


def parse_genre_params(values: Iterable[str] | str | None) -> list[str]:
    """Accept repeated ?genre= values and/or comma-separated lists."""
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    tokens: list[str] = []
    for value in values:
        tokens.extend(part.strip() for part in value.split(",") if part.strip())
    return tokens


def expand_genre(token: str) -> list[str]:
    normalized = normalize_text(token)
    if not normalized:
        return []
    return GENRE_SYNONYMS.get(normalized, [normalized])


def expand_genres(tokens: Iterable[str]) -> list[str]:
    expanded: list[str] = []
    for token in tokens:
        for synonym in expand_genre(token):
            if synonym not in expanded:
                expanded.append(synonym)
    return expanded


def _genre_matches(genre: str, synonym: str) -> bool:
    return synonym in genre or genre in synonym


def matches_genres(movie_genres: Sequence[Any] | None, expanded: Sequence[str]) -> bool:
    """True when any stored genre matches any expanded request synonym."""
    if not movie_genres or not isinstance(movie_genres, (list, tuple)):
        return False
    for raw in movie_genres:
        genre = normalize_text(str(raw))
        if not genre:
            continue
        if any(_genre_matches(genre, synonym) for synonym in expanded):
            return True
    return False


def filter_by_genres(items: list[dict[str, Any]], genres: Sequence[str]) -> list[dict[str, Any]]:
    """Keep items matching any requested genre. No request tokens -> no filtering."""
    expanded = expand_genres(genres)
    if not expanded:
        return items
    return [item for item in items if matches_genres(item.get("genres"), expanded)]


# ── Sorting ───────────────────────────────────────────────────────────────────

def _naive(value: datetime | None) -> datetime:
    if value is None:
        return _OLDEST
    return value.replace(tzinfo=None)


def _release_key(item: dict[str, Any]) -> tuple[bool, date]:
    released = item.get("release_date")
    return (released is not None, released or date.min)


def sort_movies(items: list[dict[str, Any]], sort: str | None) -> list[dict[str, Any]]:
    """
    Order annotated movie dicts, newest / highest first.

    Python's sort is stable (also with reverse=True), so ties keep their
    incoming order. Missing ratings count as 0 and undated movies as oldest.
    """
    key = (sort or "").strip().lower()
    if key in SORT_RELEASE_DATE:
        return sorted(items, key=_release_key, reverse=True)
    if key in SORT_CRITIC:
        return sorted(items, key=lambda m: m.get("critic_rating") or 0, reverse=True)
    if key in SORT_AUDIENCE:
        return sorted(items, key=lambda m: m.get("audience_rating") or 0, reverse=True)
    return sorted(items, key=lambda m: _naive(m.get("created_at")), reverse=True)
