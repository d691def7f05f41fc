"""Alembic environment for the quick_tests schema.

Two entry points share one configure():
    - DatabaseSessionManager.migrate() hands over an open connection via
      config.attributes["connection"]; nothing else is touched
    - The alembic CLI gets its URL from Settings (DATABASE_URL / .env), falling back
      to sqlalchemy.url in alembic.ini, and opens its own throwaway async engine
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from rona.config import get_settings
from rona.db.base import Base
from rona.migrations import VERSION_TABLE
from rona.models import QuickTestRow  # noqa: F401

config = context.config
supplied_connection: Connection | None = config.attributes.get("connection")

if supplied_connection is None and config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=Base.metadata,
        version_table=VERSION_TABLE,
        render_as_batch=True,
        **kwargs,
    )


def _cli_url() -> str:
    return get_settings().database_url or config.get_main_option("sqlalchemy.url")


def _upgrade(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def _upgrade_with_own_engine(url: str) -> None:
    engine = create_async_engine(url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_upgrade)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _configure(
        url=_cli_url(), literal_binds=True, dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()
elif supplied_connection is not None:
    _upgrade(supplied_connection)
else:
    asyncio.run(_upgrade_with_own_engine(_cli_url()))
