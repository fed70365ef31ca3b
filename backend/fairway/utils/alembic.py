from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import Connection, create_engine, text
from sqlalchemy.pool import NullPool

from alembic import command
from fairway.config import config
from fairway.sql.locks import LockScope
from fairway.utils.logging import logger


def get_alembic_config() -> Config:
    alembic_config = Config(config.alembic_ini_path)
    alembic_config.set_main_option("sqlalchemy.url", str(config.pg_dsn))
    return alembic_config


def get_schema_revisions(alembic_config: Config, connection: Connection) -> tuple[str | None, str | None]:
    """Return the revision the database is at and the latest revision shipped with the code."""
    current = MigrationContext.configure(connection).get_current_revision()
    head = ScriptDirectory.from_config(alembic_config).get_current_head()
    return current, head


def alembic_run_migrations() -> None:
    """
    Upgrade the schema to the latest revision.

    Workers that start together serialise on a session-level advisory lock in the database, so
    this holds across hosts. Whoever gets the lock after the first upgrade finds the schema at
    head and does nothing.
    """
    alembic_config = get_alembic_config()
    engine = create_engine(str(config.pg_dsn), poolclass=NullPool)
    lock_values = {"lock_scope": int(LockScope.MIGRATIONS), "lock_key": 0}
    with engine.connect() as connection:
        connection.execute(text("SELECT pg_advisory_lock(:lock_scope, :lock_key)"), lock_values)
        try:
            current, head = get_schema_revisions(alembic_config, connection)
            if current == head:
                logger.info(f"Schema is at revision {head}, no migrations to run")
                return

            logger.info(f"Migrating schema from revision {current} to {head}")
            command.upgrade(alembic_config, "head")
        finally:
            connection.execute(text("SELECT pg_advisory_unlock(:lock_scope, :lock_key)"), lock_values)
    engine.dispose()
