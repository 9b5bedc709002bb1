# alembic/env.py
from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, event, pool

from ledgerbook_app.db import enable_sqlite_foreign_keys
from ledgerbook_app.models import Base

# Alembic Config object
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Target metadata for 'autogenerate' support.
target_metadata = Base.metadata


def get_url() -> str:
    # 1. URL handed over programmatically (CLI --db, test fixtures)
    explicit = config.attributes.get("sqlalchemy.url")
    if explicit:
        return explicit

    # 2. Environment
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    # 3. Fallback to alembic.ini
    ini_url = config.get_main_option("sqlalchemy.url")
    if ini_url:
        return ini_url

    raise RuntimeError("No DATABASE_URL set and no sqlalchemy.url in alembic.ini")


def run_migrations_offline() -> None:
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_url()
    connectable = create_engine(url, poolclass=pool.NullPool, future=True)
    if url.startswith("sqlite"):
        event.listen(connectable, "connect", enable_sqlite_foreign_keys)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=url.startswith("sqlite"),
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
