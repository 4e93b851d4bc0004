"""Alembic environment for the NephroWatch schema.

The connection URL always comes from ``DATABASE_URL`` through the application
settings, so migrations and the API target the same database. Online runs use
the async driver; offline runs emit plain SQL.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from alembic import context
from nephrowatch.config import settings
from nephrowatch.models import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

MIGRATION_OPTIONS = {
    "target_metadata": Base.metadata,
    "compare_type": True,
}


def _migrate(connection: Connection | None = None) -> None:
    if connection is None:
        context.configure(
            url=settings.database_url,
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
            **MIGRATION_OPTIONS,
        )
    else:
        context.configure(connection=connection, **MIGRATION_OPTIONS)

    with context.begin_transaction():
        context.run_migrations()


async def _migrate_online() -> None:
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    _migrate()
else:
    asyncio.run(_migrate_online())
