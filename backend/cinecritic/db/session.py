"""
SQLAlchemy engine + session factory.
Import *get_db* as a FastAPI dependency in route handlers.
"""
from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from cinecritic.core.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    # Health-check connections before handing them to the app
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
    # Log every SQL statement in dev; silence in production
    echo=settings.is_dev,
)

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,  # Avoid lazy-load errors after commit
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a request-scoped DB session.

    Catalog upserts commit one movie at a time, so a session may see
    several commits over one request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
