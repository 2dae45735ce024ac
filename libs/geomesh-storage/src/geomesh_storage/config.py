"""Database configuration via environment variables."""

from pydantic_settings import BaseSettings


class DatabaseConfig(BaseSettings):
    """PostgreSQL connection settings, loaded from GEOMESH_DB_* env vars.

    Defaults match a local development database.
    """

    model_config = {"env_prefix": "GEOMESH_DB_"}

    host: str = "localhost"
    port: int = 5432
    user: str = "geomesh"
    password: str = "geomesh_dev"  # noqa: S105
    name: str = "geomesh"

    min_pool_size: int = 2
    max_pool_size: int = 10
    pool_timeout: float = 30.0
    statement_timeout_ms: int = 5000

    @property
    def dsn(self) -> str:
        """PostgreSQL connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"

    @property
    def sqlalchemy_url(self) -> str:
        """Connection URL for Alembic, pinned to the psycopg 3 driver."""
        return self.dsn.replace("postgresql://", "postgresql+psycopg://", 1)
