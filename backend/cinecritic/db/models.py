"""
SQLAlchemy ORM models.

Column names and constraints match alembic/versions/0001_initial_schema.py.
Types are picked so the same metadata also builds on SQLite (the test
suite runs against an in-memory database): Uuid is native UUID on
Postgres, and JSON list columns become JSONB there.
"""
import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship


# ── Base ──────────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


# ── Enums ─────────────────────────────────────────────────────────────────────

class UserRoleEnum(str, PyEnum):
    USER = "USER"
    CRITIC = "CRITIC"

    @classmethod
    def value_of(cls, role: "UserRoleEnum | str") -> str:
        """Plain string for an enum member or a raw column value."""
        return role.value if isinstance(role, cls) else str(role)


# ── Column helpers ────────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


StringList = JSON().with_variant(JSONB(), "postgresql")
# Postgres BIGINT; SQLite only autoincrements INTEGER but this is not a PK anyway
ExternalId = BigInteger().with_variant(Integer(), "sqlite")


# ── Models ────────────────────────────────────────────────────────────────────

class User(Base):
    """
    Application user.

    role starts as USER and is promoted to CRITIC by the review service once
    the user has written enough reviews. Ratings are always computed from the
    current role, so a promotion moves all of a user's past reviews into the
    critic pool.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(
        SAEnum(UserRoleEnum, name="user_role"),
        nullable=False,
        default=UserRoleEnum.USER,
    )
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    reviews = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"


class Movie(Base):
    """
    Canonical local movie record.

    external_api_id links the row to one provider identity (an IMDb number,
    a TMDB id, or the title/year hash) and is the reconciliation key.
    """
    __tablename__ = "movies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    external_api_id = Column(ExternalId, nullable=True)
    title = Column(String(500), nullable=False, index=True)
    synopsis = Column(Text, nullable=True)
    poster_url = Column(String(1000), nullable=True)
    release_date = Column(Date, nullable=True)
    genres = Column(StringList, nullable=False, default=list)
    actors = Column(StringList, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("external_api_id", name="uq_movies_external_api_id"),
    )

    reviews = relationship(
        "Review",
        back_populates="movie",
        cascade="all, delete-orphan",
        lazy="dynamic",
    )

    def __repr__(self) -> str:
        return f"<Movie id={self.id} title={self.title!r} ext={self.external_api_id}>"


class Review(Base):
    """A user's 1-10 score (plus optional comment) for one movie."""
    __tablename__ = "reviews"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    movie_id = Column(
        Uuid,
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    score = Column(Integer, nullable=False)
    comment_text = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (
        # One review per user per movie
        UniqueConstraint("user_id", "movie_id", name="uq_reviews_user_movie"),
        CheckConstraint("score BETWEEN 1 AND 10", name="chk_review_score_range"),
    )

    user = relationship("User", back_populates="reviews")
    movie = relationship("Movie", back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review user={self.user_id} movie={self.movie_id} score={self.score}>"
