"""Alembic entry point for the Flash Vote schema.

The URL comes from ``settings.DATABASE_URL`` (the same value the API uses),
never from alembic.ini. Run from ``backend/``; alembic.ini prepends it to
sys.path so ``flashvote`` imports without an install.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from flashvote.config import settings
from flashvote.database import Base

# Registers rooms, questions, options, participants, responses, audit_logs
from flashvote.models.room import Room                # noqa: F401
from flashvote.models.question import Question        # noqa: F401
from flashvote.models.option import Option            # noqa: F401
from flashvote.models.participant import Participant  # noqa: F401
from flashvote.models.response import Response        # noqa: F401
from flashvote.models.audit_log import AuditLog       # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL for the configured dialect without connecting."""
    context.configure(
        url=settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        # enum columns (room_status, question_type, ...) change with the model
        compare_type=True,
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
        # SQLite needs batch mode to ALTER the constrained tables
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
