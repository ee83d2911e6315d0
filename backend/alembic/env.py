"""
Alembic env.py for the CineCritic schema (users, movies, reviews).

The database URL comes from cinecritic.core.config.settings, so migrations
and the running API always point at the same DATABASE_URL.

Usage:
  cd backend
  alembic upgrade head
  alembic downgrade -1
  alembic revision --autogenerate -m "describe_change"
"""
import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

# backend/ on sys.path so `cinecritic` resolves without an install
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from cinecritic.core.config import settings  # noqa: E402
from cinecritic.db.models import Base  # noqa: E402

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _configure_kwargs() -> dict:
    # JSON/JSONB and BigInteger variants differ per dialect; compare types so
    # autogenerate notices drift on Postgres.
    return {"target_metadata": target_metadata, "compare_type": True}


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of running it."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_kwargs())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
