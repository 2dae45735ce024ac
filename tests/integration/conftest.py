"""Integration test fixtures — PostgreSQL via testcontainers."""

from collections.abc import AsyncIterator
from typing import Any

import pytest
from psycopg import AsyncConnection
from psycopg.rows import dict_row
from testcontainers.postgres import PostgresContainer  # type: ignore[import-untyped]

from geomesh_storage.config import DatabaseConfig
from geomesh_storage.pool import ConnectionPool
from geomesh_storage.repositories.node import NodeRepository
from geomesh_storage.repositories.routing_domain import RoutingDomainRepository

POSTGRES_IMAGE = "postgres:16"


@pytest.fixture(scope="session")
def postgres_container() -> Any:
    """Start a PostgreSQL container for the test session."""
    with PostgresContainer(
        image=POSTGRES_IMAGE,
        username="test",
        password="test",
        dbname="test_geomesh",
    ) as container:
        yield container


@pytest.fixture(scope="session")
def db_config(postgres_container: Any) -> DatabaseConfig:
    """Build a DatabaseConfig pointing at the test container."""
    host = postgres_container.get_container_host_ip()
    port = int(postgres_container.get_exposed_port(5432))
    return DatabaseConfig(
        host=host,
        port=port,
        user="test",
        password="test",
        name="test_geomesh",
    )


@pytest.fixture(scope="session")
def _run_migrations(db_config: DatabaseConfig) -> None:
    """Run Alembic migrations against the test database."""
    from alembic import command
    from alembic.config import Config

    alembic_cfg = Config()
    alembic_cfg.set_main_option(
        "script_location",
        "libs/geomesh-storage/src/geomesh_storage/migrations",
    )
    alembic_cfg.set_main_option("sqlalchemy.url", db_config.sqlalchemy_url)
    command.upgrade(alembic_cfg, "head")


@pytest.fixture
async def pool(
    db_config: DatabaseConfig,
    _run_migrations: None,
) -> AsyncIterator[ConnectionPool]:
    """Provide an open ConnectionPool for each test."""
    async with ConnectionPool(db_config) as p:
        yield p


@pytest.fixture
async def conn(
    pool: ConnectionPool,
) -> AsyncIterator[AsyncConnection[dict[str, object]]]:
    """Provide a connection and clean up tables after each test."""
    async with pool.connection() as connection:
        yield connection
        async with connection.cursor() as cur:
            await cur.execute(
                "TRUNCATE location_records, routing_domains, node_geo_history, resolver_nodes"
                " CASCADE"
            )


@pytest.fixture
def node_repo(conn: AsyncConnection[dict[str, object]]) -> NodeRepository:
    """Provide a NodeRepository bound to the test connection."""
    return NodeRepository(conn)


@pytest.fixture
def domain_repo(conn: AsyncConnection[dict[str, object]]) -> RoutingDomainRepository:
    """Provide a RoutingDomainRepository bound to the test connection."""
    return RoutingDomainRepository(conn)


@pytest.fixture
async def raw_conn(
    db_config: DatabaseConfig,
    _run_migrations: None,
) -> AsyncIterator[AsyncConnection[dict[str, object]]]:
    """Provide a raw psycopg connection (without pool) for verification queries."""
    conn = await AsyncConnection.connect(db_config.dsn, row_factory=dict_row, autocommit=True)
    try:
        yield conn
    finally:
        await conn.close()
