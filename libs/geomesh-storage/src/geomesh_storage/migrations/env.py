"""Alembic environment for the resolver roster and routing domain schema.

When no ``sqlalchemy.url`` is configured, the URL is built from the
``GEOMESH_DB_*`` environment through DatabaseConfig, pinned to psycopg 3.
"""

from alembic import context

from geomesh_storage.config import DatabaseConfig

config = context.config


def database_url() -> str:
    """The configured ``sqlalchemy.url``, falling back to the GEOMESH_DB_* settings."""
    return config.get_main_option("sqlalchemy.url") or DatabaseConfig().sqlalchemy_url


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    context.configure(url=database_url(), target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations over a single psycopg 3 connection."""
    from sqlalchemy import create_engine
    from sqlalchemy.pool import NullPool

    connectable = create_engine(database_url(), poolclass=NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
