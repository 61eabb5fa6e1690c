import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

# Make sure the project root is on sys.path so we can import app.*
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

# Import all models so Alembic can see them for autogenerate
from app.models import Base  # noqa: E402

config = context.config

# Alembic's CLI is synchronous, so it needs the sync driver URL (psycopg2), not asyncpg.
# No fallback: database credentials are never committed.
database_url = os.getenv("DATABASE_URL_SYNC")
if not database_url:
    raise RuntimeError("DATABASE_URL_SYNC must be set to run migrations")
config.set_main_option("sqlalchemy.url", database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit migration SQL without connecting to the database."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
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
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
