"""Node lifecycle — what happens when a resolver node connects or polls."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from geomesh_core.config import GeoMeshSettings
from geomesh_core.exceptions import InvalidInputError
from geomesh_core.geo.lookup import clean_ip
from geomesh_core.health import HealthMonitor
from geomesh_core.models.entities import GEO_HISTORY_LIMIT
from geomesh_core.models.responses import HeartbeatResult
from geomesh_core.models.values import GeoHistoryEntry
from geomesh_core.registration import AutoRegistrationService, derive_location_codes
from geomesh_core.stores import bounded

if TYPE_CHECKING:
    from geomesh_core.geo.lookup import GeoLookup
    from geomesh_core.models.entities import ResolverNode
    from geomesh_core.models.identifiers import LocationCode, NodeId
    from geomesh_core.models.values import GeoInfo
    from geomesh_core.stores import NodeRosterStore, RoutingDomainStore

logger = logging.getLogger(__name__)


class NodeLifecycleService:
    """Entry point for the node-connect and polling endpoints."""

    def __init__(
        self,
        node_store: NodeRosterStore,
        domain_store: RoutingDomainStore,
        geo_lookup: GeoLookup,
        settings: GeoMeshSettings | None = None,
    ) -> None:
        self._settings = settings or GeoMeshSettings()
        self._nodes = node_store
        self._geo = geo_lookup
        self.registration = AutoRegistrationService(domain_store, self._settings)
        self.health = HealthMonitor(node_store, self._settings)

    @property
    def _timeout(self) -> float:
        return self._settings.store_timeout_seconds

    async def _get(self, node_id: NodeId) -> ResolverNode:
        return await bounded(self._nodes.get_node(node_id), "get_node", self._timeout)

    async def _update(self, node_id: NodeId, **fields: Any) -> ResolverNode:
        return await bounded(
            self._nodes.update_node(node_id, **fields), "update_node", self._timeout
        )

    async def _lookup(self, ip_address: str | None) -> GeoInfo:
        return await bounded(self._geo.lookup(ip_address), "geo_lookup", self._timeout)

    def _codes(self, geo: GeoInfo | None) -> list[LocationCode]:
        return derive_location_codes(geo, default_code=self._settings.default_location_code)

    async def connect(
        self, node_id: NodeId, remote_ip: str | None, now: datetime | None = None
    ) -> HeartbeatResult:
        """First contact from a node: record its address and auto-register it."""
        now = now or datetime.now(UTC)
        node = await self._get(node_id)
        if node.connected:
            msg = f"Node {node_id} is already connected"
            raise InvalidInputError(msg)

        ip_address = clean_ip(remote_ip)
        geo = await self._lookup(ip_address)
        connected = await self._update(
            node_id,
            connected=True,
            active=True,
            connected_at=now,
            last_heartbeat=now,
            ip_address=ip_address,
            geo=geo,
        )
        logger.info(
            "Node %s connected from %s (%s)", node_id, ip_address, geo.country_code or "unknown"
        )
        assignment = await self.registration.auto_assign(connected)
        return HeartbeatResult(
            node_id=node_id,
            was_inactive=not node.active,
            ip_changed=ip_address != node.ip_address,
            auto_assignment=assignment,
        )

    async def record_heartbeat(
        self, node_id: NodeId, remote_ip: str | None, now: datetime | None = None
    ) -> HeartbeatResult:
        """Poll from a node: refresh liveness, track IP moves, reconcile the roster."""
        now = now or datetime.now(UTC)
        node = await self._get(node_id)
        ip_address = clean_ip(remote_ip)
        ip_changed = bool(ip_address) and ip_address != node.ip_address

        fields: dict[str, Any] = {"last_heartbeat": now, "active": True}
        geo = node.geo
        if ip_changed:
            geo = await self._lookup(ip_address)
            if node.ip_address:
                entry = GeoHistoryEntry(
                    ip_address=node.ip_address,
                    changed_at=now,
                    country=node.geo.country if node.geo else None,
                    city=node.geo.city if node.geo else None,
                    isp=node.geo.isp if node.geo else None,
                )
                await bounded(
                    self._nodes.append_geo_history(node_id, entry, max_len=GEO_HISTORY_LIMIT),
                    "append_geo_history",
                    self._timeout,
                )
            fields.update(ip_address=ip_address, geo=geo)
            logger.info("Node %s moved from %s to %s", node_id, node.ip_address, ip_address)

        updated = await self._update(node_id, **fields)

        assignment = None
        removal = None
        if ip_changed:
            old_codes, new_codes = self._codes(node.geo), self._codes(geo)
            stale = [code for code in old_codes if code not in new_codes]
            if stale:
                removal = await self.registration.remove_from_locations(
                    node_id, node.tenant_id, stale
                )
            if new_codes != old_codes:
                assignment = await self.registration.auto_assign(updated)

        health = await self.health.reconcile(now)
        return HeartbeatResult(
            node_id=node_id,
            was_inactive=not node.active,
            ip_changed=ip_changed,
            auto_assignment=assignment,
            removal=removal,
            health=health,
        )
