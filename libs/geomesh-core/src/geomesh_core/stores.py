"""Persistence boundaries the core services read from and write back to."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from geomesh_core.exceptions import StoreTimeoutError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping

    from geomesh_core.models.entities import ResolverNode, RoutingDomain
    from geomesh_core.models.identifiers import NodeId, RoutingDomainId, TenantId
    from geomesh_core.models.values import GeoHistoryEntry

T = TypeVar("T")


class NodeRosterStore(Protocol):
    """Resolver node records."""

    async def get_node(self, node_id: NodeId) -> ResolverNode:
        """Raises NodeNotFoundError if missing."""
        ...

    async def list_nodes(self) -> list[ResolverNode]: ...

    async def find_active_nodes_with_ip(self) -> list[ResolverNode]: ...

    async def update_node(
        self, node_id: NodeId, *, expected: Mapping[str, Any] | None = None, **fields: Any
    ) -> ResolverNode:
        """Overwrite the given fields. Raises NodeNotFoundError if missing.

        With ``expected``, the write only happens while every named field still
        holds the given value; otherwise PersistenceConflictError is raised.
        """
        ...

    async def append_geo_history(
        self, node_id: NodeId, entry: GeoHistoryEntry, max_len: int = 10
    ) -> None:
        """Append an entry, dropping the oldest ones beyond ``max_len``."""
        ...


class RoutingDomainStore(Protocol):
    """Routing domains and their location registries."""

    async def find_domains_for_tenant(
        self, tenant_id: TenantId, *, active_only: bool = True
    ) -> list[RoutingDomain]: ...

    async def get_domain(self, domain_id: RoutingDomainId) -> RoutingDomain: ...

    async def save_domain(self, domain: RoutingDomain) -> RoutingDomain:
        """Persist location assignments if ``domain.version`` is still current.

        Returns the domain with its new version; raises PersistenceConflictError
        when another writer saved first.
        """
        ...


async def bounded(awaitable: Awaitable[T], operation: str, timeout: float) -> T:
    """Await a store call, surfacing StoreTimeoutError if it exceeds ``timeout`` seconds."""
    try:
        async with asyncio.timeout(timeout):
            return await awaitable
    except TimeoutError:
        raise StoreTimeoutError(operation, timeout) from None
