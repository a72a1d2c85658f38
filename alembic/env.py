"""Alembic env for the exam schema; migrations run on a sync driver even though the app is async."""
from logging.config import fileConfig
import os

from alembic import context
from sqlalchemy import engine_from_config, pool

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

from exam_app.db.base import Base  # noqa: E402
from exam_app.core.config import get_settings  # noqa: E402

target_metadata = Base.metadata

SYNC_DRIVERS = {
    "postgresql+asyncpg://": "postgresql+psycopg2://",
    "sqlite+aiosqlite://": "sqlite://",
}


def to_sync_url(url: str) -> str:
    for async_prefix, sync_prefix in SYNC_DRIVERS.items():
        if url.startswith(async_prefix):
            return url.replace(async_prefix, sync_prefix, 1)
    return url


def get_url() -> str:
    # ALEMBIC_DATABASE_URL -> EXAM_APP_DATABASE_URL / settings -> alembic.ini
    url = os.getenv("ALEMBIC_DATABASE_URL")
    if url:
        return url

    url = get_settings().database_url
    if url:
        return to_sync_url(url)

    return config.get_main_option("sqlalchemy.url")


def _configure(**kwargs) -> None:
    url = kwargs.get("url") or get_url()
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most things in place
        render_as_batch=url.startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=get_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section) or {}
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(configuration, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
