"""Migration runner for the users and infographics schema.

The database URL comes from the application settings (``DATABASE_URL`` in the
environment or ``.env``) unless overridden with ``alembic -x database_url=...``.
"""

from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context
from infographic_api.config import Settings
from infographic_api.database import Base

# Models register their tables on Base.metadata when imported.
from infographic_api.models.infographic import Infographic  # noqa: F401
from infographic_api.models.user import User  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("database_url") or Settings().DATABASE_URL


def _configure(url: str, **kwargs) -> None:
    # SQLite cannot ALTER most constraints in place.
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    url = _database_url()
    _configure(url, url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = _database_url()
    engine = create_engine(
        url,
        poolclass=pool.NullPool,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )
    with engine.connect() as connection:
        _configure(url, connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
