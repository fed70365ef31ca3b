from alembic import context
from sqlalchemy import engine_from_config, pool

from fairway.config import config as fairway_config
from fairway.models import db  # noqa: F401
from fairway.schema import metadata

alembic_config = context.config
alembic_config.set_main_option("sqlalchemy.url", str(fairway_config.pg_dsn))


def run_migrations_offline() -> None:
    context.configure(
        url=str(fairway_config.pg_dsn),
        target_metadata=metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        alembic_config.get_section(alembic_config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
