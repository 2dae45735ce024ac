"""GeoMesh Storage — PostgreSQL persistence for nodes and routing domains."""

__version__ = "0.1.0"

from geomesh_storage.config import DatabaseConfig
from geomesh_storage.exceptions import (
    ConcurrentUpdateError,
    DuplicateNodeError,
    IntegrityError,
    NodeNotFoundError,
    RoutingDomainNotFoundError,
    StorageConnectionError,
    StorageError,
)
from geomesh_storage.pool import ConnectionPool
from geomesh_storage.repositories.node import NodeRepository
from geomesh_storage.repositories.routing_domain import RoutingDomainRepository

__all__ = [
    "ConcurrentUpdateError",
    "ConnectionPool",
    "DatabaseConfig",
    "DuplicateNodeError",
    "IntegrityError",
    "NodeNotFoundError",
    "NodeRepository",
    "RoutingDomainNotFoundError",
    "RoutingDomainRepository",
    "StorageConnectionError",
    "StorageError",
]
