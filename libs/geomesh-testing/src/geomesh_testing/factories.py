"""Concise builders for resolver nodes, geolocations and routing domains."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from geomesh_core.geo.tables import CONTINENTS
from geomesh_core.models.entities import LocationRecord, ResolverNode, RoutingDomain
from geomesh_core.models.enums import LocationType
from geomesh_core.models.identifiers import LocationCode, NodeId, RoutingDomainId, TenantId
from geomesh_core.models.values import GeoInfo

DEFAULT_TENANT = TenantId("tenant-1")


def make_geo(
    country_code: str | None = "US",
    lat: float | None = None,
    lon: float | None = None,
    **extra: Any,
) -> GeoInfo:
    return GeoInfo(country_code=country_code, lat=lat, lon=lon, **extra)


def make_node(
    node_id: str = "node-1",
    *,
    country_code: str | None = "US",
    lat: float | None = None,
    lon: float | None = None,
    ip_address: str | None = "203.0.113.10",
    active: bool = True,
    tenant_id: str = DEFAULT_TENANT,
    geo: GeoInfo | None = None,
    **fields: Any,
) -> ResolverNode:
    """A node that is active with an address unless told otherwise.

    Passing ``country_code=None`` without ``geo`` builds a node with no geolocation.
    """
    if geo is None and country_code is not None:
        geo = make_geo(country_code, lat, lon)
    fields.setdefault("connected", True)
    if active:
        fields.setdefault("last_heartbeat", datetime.now(UTC))
    return ResolverNode(
        id=NodeId(node_id),
        tenant_id=TenantId(tenant_id),
        name=fields.pop("name", node_id),
        active=active,
        ip_address=ip_address,
        geo=geo,
        **fields,
    )


def make_location(code: str, *node_ids: str, display_name: str | None = None) -> LocationRecord:
    """A location record; its type is inferred from the code."""
    code = code.lower()
    if code in CONTINENTS:
        location_type = LocationType.CONTINENT
    elif len(code) == 2:
        location_type = LocationType.COUNTRY
    else:
        location_type = LocationType.CUSTOM
    return LocationRecord(
        code=LocationCode(code),
        display_name=display_name or code.upper(),
        type=location_type,
        assigned_node_ids=[NodeId(n) for n in node_ids],
    )


def make_domain(
    domain_id: str = "domain-1",
    *codes: str,
    tenant_id: str = DEFAULT_TENANT,
    active: bool = True,
    name: str | None = None,
) -> RoutingDomain:
    return RoutingDomain(
        id=RoutingDomainId(domain_id),
        tenant_id=TenantId(tenant_id),
        name=name or f"{domain_id}.example.com",
        active=active,
        locations=[make_location(code) for code in codes],
    )
