"""Bidirectional mappers between domain models and database rows."""

from __future__ import annotations

from typing import Any

from psycopg.types.json import Jsonb

from geomesh_core.models.entities import LocationRecord, ResolverNode, RoutingDomain
from geomesh_core.models.enums import LocationType
from geomesh_core.models.identifiers import LocationCode, NodeId, RoutingDomainId, TenantId
from geomesh_core.models.values import GeoHistoryEntry, GeoInfo


class NodeMapper:
    """Maps between ResolverNode domain objects and resolver_nodes rows."""

    @staticmethod
    def geo_to_column(geo: GeoInfo | None) -> Jsonb | None:
        """Wrap a geolocation for a JSONB column."""
        if geo is None:
            return None
        return Jsonb(geo.model_dump(exclude_none=True))

    @staticmethod
    def to_row(node: ResolverNode) -> dict[str, Any]:
        """Convert a ResolverNode to a dict suitable for INSERT.

        Geolocation history lives in its own table and is not part of the row.
        """
        return {
            "id": str(node.id),
            "tenant_id": str(node.tenant_id),
            "name": node.name,
            "active": node.active,
            "connected": node.connected,
            "last_heartbeat": node.last_heartbeat,
            "connected_at": node.connected_at,
            "inactivity_threshold_seconds": node.inactivity_threshold_seconds,
            "polling_interval_seconds": node.polling_interval_seconds,
            "ip_address": node.ip_address,
            "geo": NodeMapper.geo_to_column(node.geo),
        }

    @staticmethod
    def history_to_row(node_id: NodeId, entry: GeoHistoryEntry) -> dict[str, Any]:
        return {
            "node_id": str(node_id),
            "ip_address": entry.ip_address,
            "changed_at": entry.changed_at,
            "country": entry.country,
            "city": entry.city,
            "isp": entry.isp,
        }

    @staticmethod
    def from_row(row: dict[str, Any]) -> ResolverNode:
        """Reconstruct a ResolverNode from a row, including its aggregated geo_history."""
        geo = row.get("geo")
        return ResolverNode(
            id=NodeId(row["id"]),
            tenant_id=TenantId(row["tenant_id"]),
            name=row["name"],
            active=row["active"],
            connected=row["connected"],
            last_heartbeat=row["last_heartbeat"],
            connected_at=row["connected_at"],
            inactivity_threshold_seconds=row["inactivity_threshold_seconds"],
            polling_interval_seconds=row["polling_interval_seconds"],
            ip_address=row["ip_address"],
            geo=GeoInfo.model_validate(geo) if geo else None,
            geo_history=[GeoHistoryEntry.model_validate(e) for e in row.get("geo_history") or []],
        )


class RoutingDomainMapper:
    """Maps between RoutingDomain objects and routing_domains/location_records rows."""

    @staticmethod
    def to_row(domain: RoutingDomain) -> dict[str, Any]:
        return {
            "id": str(domain.id),
            "tenant_id": str(domain.tenant_id),
            "name": domain.name,
            "active": domain.active,
            "version": domain.version,
        }

    @staticmethod
    def location_rows(domain: RoutingDomain) -> list[dict[str, Any]]:
        """One row per location, with ``position`` preserving domain order."""
        return [
            {
                "domain_id": str(domain.id),
                "position": position,
                "code": str(location.code),
                "display_name": location.display_name,
                "type": location.type.value,
                "assigned_node_ids": [str(n) for n in location.assigned_node_ids],
            }
            for position, location in enumerate(domain.locations)
        ]

    @staticmethod
    def location_from_row(row: dict[str, Any]) -> LocationRecord:
        return LocationRecord(
            code=LocationCode(row["code"]),
            display_name=row["display_name"],
            type=LocationType(row["type"]),
            assigned_node_ids=[NodeId(n) for n in row.get("assigned_node_ids") or []],
        )

    @staticmethod
    def from_row(row: dict[str, Any]) -> RoutingDomain:
        """Reconstruct a RoutingDomain from a row with aggregated ``locations``."""
        return RoutingDomain(
            id=RoutingDomainId(row["id"]),
            tenant_id=TenantId(row["tenant_id"]),
            name=row["name"],
            active=row["active"],
            version=row["version"],
            locations=[
                RoutingDomainMapper.location_from_row(loc) for loc in row.get("locations") or []
            ],
        )
