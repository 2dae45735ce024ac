"""Repository layer for geomesh-storage."""

from geomesh_storage.repositories.node import NodeRepository
from geomesh_storage.repositories.routing_domain import RoutingDomainRepository

__all__ = ["NodeRepository", "RoutingDomainRepository"]
