"""
Rating aggregation — critic / audience scores derived from review rows.

Nothing is cached or persisted: every read partitions the movie's reviews
by each author's *current* role, so promoting a user to CRITIC moves all
of their earlier reviews into the critic pool on the next read.

  rating = round_half_up(mean(scores) * 10)   # 1-10 scores -> 0-100
  rating = 0 when the partition is empty
"""
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.orm import Session

from cinecritic.db.catalog_store import find_review_rows_by_movie, find_review_rows_by_movies
from cinecritic.db.models import UserRoleEnum


@dataclass(frozen=True)
class RatingSnapshot:
    critic_rating: int = 0
    audience_rating: int = 0
    critic_reviews_count: int = 0
    audience_reviews_count: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "critic_rating": self.critic_rating,
            "audience_rating": self.audience_rating,
            "critic_reviews_count": self.critic_reviews_count,
            "audience_reviews_count": self.audience_reviews_count,
        }


def scaled_mean(scores: Sequence[int]) -> int:
    """mean * 10 rounded half up, in integer arithmetic; 0 for no scores."""
    if not scores:
        return 0
    n = len(scores)
    return (20 * sum(scores) + n) // (2 * n)


def aggregate_scores(rows: Iterable[tuple[int, UserRoleEnum | str]]) -> RatingSnapshot:
    """Partition (score, role) rows and compute the snapshot."""
    critic_scores: list[int] = []
    audience_scores: list[int] = []
    for score, role in rows:
        role_value = UserRoleEnum.value_of(role)
        if role_value == UserRoleEnum.CRITIC.value:
            critic_scores.append(score)
        elif role_value == UserRoleEnum.USER.value:
            audience_scores.append(score)

    return RatingSnapshot(
        critic_rating=scaled_mean(critic_scores),
        audience_rating=scaled_mean(audience_scores),
        critic_reviews_count=len(critic_scores),
        audience_reviews_count=len(audience_scores),
    )


def compute_ratings(db: Session, movie_id: UUID) -> RatingSnapshot:
    return aggregate_scores(find_review_rows_by_movie(db, movie_id))


def compute_ratings_for_movies(
    db: Session,
    movie_ids: Sequence[UUID],
) -> dict[UUID, RatingSnapshot]:
    """compute_ratings for many movies with a single query."""
    grouped: dict[UUID, list[tuple[int, UserRoleEnum]]] = defaultdict(list)
    for movie_id, score, role in find_review_rows_by_movies(db, movie_ids):
        grouped[movie_id].append((score, role))
    return {movie_id: aggregate_scores(grouped.get(movie_id, [])) for movie_id in movie_ids}
