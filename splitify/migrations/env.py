"""
splitify/migrations/env.py — Alembic environment.

The database URL comes from the same config classes the app uses, picked by
FLASK_ENV (development by default). TEST_RUN=1 selects the testing config.

SQLite cannot ALTER most constraints in place, so migrations run in batch
mode there.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from splitify.app.extensions import db
from splitify.app.models import ledger, person, transaction  # noqa: F401
from splitify.config import config_by_name

target_metadata = db.metadata


def _database_url() -> str:
    env_name = "testing" if os.getenv("TEST_RUN") else os.getenv("FLASK_ENV", "development")
    url = config_by_name.get(env_name, config_by_name["development"]).SQLALCHEMY_DATABASE_URI
    if not url:
        raise RuntimeError(f"No database URL configured for the {env_name!r} environment.")
    return url


config = context.config
db_url = _database_url()
config.set_main_option("sqlalchemy.url", db_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_render_as_batch = db_url.startswith("sqlite")


def run_migrations_offline() -> None:
    context.configure(
        url=db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        render_as_batch=_render_as_batch,
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
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=_render_as_batch,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
