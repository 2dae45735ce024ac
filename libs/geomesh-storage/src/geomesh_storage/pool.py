"""Async connection pool wrapper for psycopg3."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Self

from psycopg import AsyncConnection, OperationalError
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from geomesh_storage.exceptions import StorageConnectionError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from geomesh_storage.config import DatabaseConfig


class ConnectionPool:
    """Manages an async psycopg connection pool with a bounded statement timeout."""

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._pool: AsyncConnectionPool[AsyncConnection[dict[str, object]]] | None = None

    async def open(self) -> None:
        """Create and open the connection pool."""
        self._pool = AsyncConnectionPool[AsyncConnection[dict[str, object]]](
            conninfo=self._config.dsn,
            min_size=self._config.min_pool_size,
            max_size=self._config.max_pool_size,
            timeout=self._config.pool_timeout,
            open=False,
            kwargs={
                "row_factory": dict_row,
                "autocommit": True,
                "options": f"-c statement_timeout={self._config.statement_timeout_ms}",
            },
        )
        try:
            await self._pool.open(wait=True, timeout=self._config.pool_timeout)
        except (PoolTimeout, OperationalError) as exc:
            self._pool = None
            msg = f"Could not open connection pool: {exc}"
            raise StorageConnectionError(msg) from exc

    async def close(self) -> None:
        """Close the connection pool."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection[dict[str, object]]]:
        """Yield an async connection from the pool."""
        if self._pool is None:
            msg = "Connection pool is not open. Call open() first."
            raise RuntimeError(msg)
        try:
            async with self._pool.connection() as conn:
                yield conn
        except PoolTimeout as exc:
            msg = f"No connection available within {self._config.pool_timeout}s"
            raise StorageConnectionError(msg) from exc

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.close()
