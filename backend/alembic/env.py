"""Alembic environment for the Whisperbox schema (async engine)."""

from __future__ import annotations

import asyncio
import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.ext.asyncio import async_engine_from_config

from whisperbox import models
from whisperbox.config import get_settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

logger = logging.getLogger("alembic.env")

target_metadata = models.Base.metadata


def resolve_database_url() -> str:
    """
    Pick the database to migrate.

    ``alembic -x url=...`` wins, then DATABASE_URL (environment or .env),
    then sqlalchemy.url from alembic.ini, then the app default.
    """
    override = context.get_x_argument(as_dictionary=True).get("url")
    if override:
        return override
    if "DATABASE_URL" in os.environ:
        return get_settings().database_url
    return config.get_main_option("sqlalchemy.url") or get_settings().database_url


DATABASE_URL = resolve_database_url()
config.set_main_option("sqlalchemy.url", DATABASE_URL)
logger.info("Migrating %s", make_url(DATABASE_URL).render_as_string(hide_password=True))

# SQLite cannot ALTER most constraints in place
RENDER_AS_BATCH = make_url(DATABASE_URL).get_backend_name() == "sqlite"


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""

    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Apply migrations through a throwaway async engine."""

    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section) or {},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
