"""
Shared test helpers: in-memory SQLite sessions, row builders and a
scriptable movie provider.
"""
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cinecritic.db.models import Base, Movie, Review, User, UserRoleEnum
from cinecritic.schemas.providers import NormalizedMovie

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def add_user(db, username: str, role: UserRoleEnum = UserRoleEnum.USER) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash="not-a-real-hash",
        role=role,
    )
    db.add(user)
    db.commit()
    return user


def add_movie(
    db,
    title: str,
    external_api_id: int | None = None,
    genres: list[str] | None = None,
    release_date: date | None = None,
    minutes_after_base: int = 0,
) -> Movie:
    created = BASE_TIME + timedelta(minutes=minutes_after_base)
    movie = Movie(
        title=title,
        external_api_id=external_api_id,
        genres=genres or [],
        actors=[],
        release_date=release_date,
        created_at=created,
        updated_at=created,
    )
    db.add(movie)
    db.commit()
    return movie


def add_review(db, user: User, movie: Movie, score: int) -> Review:
    review = Review(user_id=user.id, movie_id=movie.id, score=score)
    db.add(review)
    db.commit()
    return review


def normalized(
    external_api_id: int | None,
    title: str,
    source: str = "omdb",
    **fields,
) -> NormalizedMovie:
    return NormalizedMovie(
        external_api_id=external_api_id,
        title=title,
        source=source,
        **fields,
    )


class FakeProvider:
    """Records calls; answers from canned trending lists and id maps."""

    def __init__(self, name: str, trending=None, by_id=None) -> None:
        self.name = name
        self.trending_movies = list(trending or [])
        self.by_id = dict(by_id or {})
        self.trending_calls = 0
        self.lookups: list = []

    async def trending(self) -> list[NormalizedMovie]:
        self.trending_calls += 1
        return list(self.trending_movies)

    async def find_by_id(self, native_id):
        self.lookups.append(native_id)
        return self.by_id.get(native_id)

    async def search(self, query: str) -> list[NormalizedMovie]:
        return []
