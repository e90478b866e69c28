"""Migration runner for the attempt store schema.

The service talks to the database through an async driver; migrations run
synchronously, so the URL is mapped to its blocking driver first.
"""
from logging.config import fileConfig
import os

from alembic import context
from sqlalchemy import engine_from_config, pool

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from simtrack.core.config import get_settings  # noqa: E402
from simtrack.db.base import Base  # noqa: E402

target_metadata = Base.metadata

SYNC_DRIVERS = {
    "sqlite+aiosqlite://": "sqlite://",
    "postgresql+asyncpg://": "postgresql+psycopg2://",
}


def database_url() -> str:
    # ALEMBIC_DATABASE_URL wins, then the service setting, then alembic.ini
    explicit = os.getenv("ALEMBIC_DATABASE_URL")
    if explicit:
        return explicit
    url = get_settings().database_url or config.get_main_option("sqlalchemy.url")
    for async_prefix, sync_prefix in SYNC_DRIVERS.items():
        if url.startswith(async_prefix):
            return sync_prefix + url[len(async_prefix):]
    return url


def _configure(**kwargs) -> None:
    is_sqlite = database_url().startswith("sqlite")
    context.configure(target_metadata=target_metadata, compare_type=True, render_as_batch=is_sqlite, **kwargs)


if context.is_offline_mode():
    _configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()
else:
    section = config.get_section(config.config_ini_section) or {}
    section["sqlalchemy.url"] = database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()
