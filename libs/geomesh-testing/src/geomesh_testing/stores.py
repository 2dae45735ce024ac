"""In-memory NodeRosterStore and RoutingDomainStore with the same semantics as PostgreSQL."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from geomesh_core.exceptions import (
    InvalidInputError,
    NodeNotFoundError,
    PersistenceConflictError,
    RoutingDomainNotFoundError,
)
from geomesh_core.models.entities import GEO_HISTORY_LIMIT, ResolverNode

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from geomesh_core.models.entities import RoutingDomain
    from geomesh_core.models.identifiers import NodeId, RoutingDomainId, TenantId
    from geomesh_core.models.values import GeoHistoryEntry

_IMMUTABLE_NODE_FIELDS = frozenset({"id", "tenant_id", "geo_history"})


class InMemoryNodeStore:
    """Node roster held in a dict. Returned nodes are copies."""

    def __init__(self, nodes: Iterable[ResolverNode] = ()) -> None:
        self._nodes: dict[NodeId, ResolverNode] = {}
        self._lock = asyncio.Lock()
        self.update_calls: list[tuple[NodeId, dict[str, Any]]] = []
        for node in nodes:
            self.add(node)

    def add(self, node: ResolverNode) -> None:
        self._nodes[node.id] = node.model_copy(deep=True)

    async def get_node(self, node_id: NodeId) -> ResolverNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node.model_copy(deep=True)

    async def list_nodes(self) -> list[ResolverNode]:
        return [node.model_copy(deep=True) for node in self._nodes.values()]

    async def find_active_nodes_with_ip(self) -> list[ResolverNode]:
        return [node.model_copy(deep=True) for node in self._nodes.values() if node.is_eligible]

    async def update_node(
        self, node_id: NodeId, *, expected: Mapping[str, Any] | None = None, **fields: Any
    ) -> ResolverNode:
        expected = expected or {}
        updatable = set(ResolverNode.model_fields) - _IMMUTABLE_NODE_FIELDS
        invalid = (set(fields) | set(expected)) - updatable
        if invalid:
            msg = f"Cannot update node fields: {', '.join(sorted(invalid))}"
            raise InvalidInputError(msg)
        async with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                raise NodeNotFoundError(node_id)
            if any(getattr(node, name) != value for name, value in expected.items()):
                raise PersistenceConflictError("resolver node", node_id)
            self.update_calls.append((node_id, dict(fields)))
            updated = ResolverNode.model_validate({**dict(node), **fields})
            self._nodes[node_id] = updated
        return updated.model_copy(deep=True)

    async def append_geo_history(
        self, node_id: NodeId, entry: GeoHistoryEntry, max_len: int = GEO_HISTORY_LIMIT
    ) -> None:
        async with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                raise NodeNotFoundError(node_id)
            history = [*node.geo_history, entry][-max_len:]
            self._nodes[node_id] = node.model_copy(update={"geo_history": history})


class InMemoryRoutingDomainStore:
    """Routing domains held in a dict, saved with a version check like the SQL store."""

    def __init__(self, domains: Iterable[RoutingDomain] = ()) -> None:
        self._domains: dict[RoutingDomainId, RoutingDomain] = {}
        self._lock = asyncio.Lock()
        self._pending_conflicts = 0
        self.save_count = 0
        for domain in domains:
            self.add(domain)

    def add(self, domain: RoutingDomain) -> None:
        self._domains[domain.id] = domain.model_copy(deep=True)

    def inject_conflicts(self, count: int) -> None:
        """Make the next ``count`` saves lose a race against another writer."""
        self._pending_conflicts = count

    def stored(self, domain_id: RoutingDomainId) -> RoutingDomain:
        """Direct view of the stored copy, for assertions."""
        return self._domains[domain_id]

    async def find_domains_for_tenant(
        self, tenant_id: TenantId, *, active_only: bool = True
    ) -> list[RoutingDomain]:
        return [
            domain.model_copy(deep=True)
            for domain in self._domains.values()
            if domain.tenant_id == tenant_id and (domain.active or not active_only)
        ]

    async def get_domain(self, domain_id: RoutingDomainId) -> RoutingDomain:
        domain = self._domains.get(domain_id)
        if domain is None:
            raise RoutingDomainNotFoundError(domain_id)
        return domain.model_copy(deep=True)

    async def save_domain(self, domain: RoutingDomain) -> RoutingDomain:
        async with self._lock:
            current = self._domains.get(domain.id)
            if current is None:
                raise RoutingDomainNotFoundError(domain.id)
            if self._pending_conflicts:
                self._pending_conflicts -= 1
                self._domains[domain.id] = current.model_copy(
                    update={"version": current.version + 1}
                )
                raise PersistenceConflictError("routing domain", domain.id)
            if current.version != domain.version:
                raise PersistenceConflictError("routing domain", domain.id)

            saved = domain.model_copy(deep=True, update={"version": domain.version + 1})
            self._domains[domain.id] = saved
            self.save_count += 1
        return saved.model_copy(deep=True)
