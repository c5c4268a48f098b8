import asyncio
import os
import sys
from logging.config import fileConfig
from sqlalchemy import make_url, pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from app.models import Base
from app.core.config import settings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# DATABASE_URL keeps its async driver; migrations run on the async engine
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

database_url = make_url(config.get_main_option("sqlalchemy.url"))
print("🔍 Alembic is using DB URL:", database_url.render_as_string(hide_password=True))

target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        # SQLite cannot ALTER most constraints in place
        render_as_batch=database_url.get_backend_name() == "sqlite",
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of touching a database."""
    if settings.ENVIRONMENT.lower() == "production":
        raise RuntimeError("Offline migrations not allowed in production!")

    _configure(
        url=database_url.set(drivername=database_url.get_backend_name()),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    connectable = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


def run_migrations_online() -> None:
    if settings.ENVIRONMENT.lower() == "production":
        print("🚨 PRODUCTION ENVIRONMENT DETECTED")
        if "downgrade" in sys.argv:
            raise RuntimeError("🚫 Downgrades are blocked in production!")

    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
