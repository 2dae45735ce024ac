"""Auto-registration — joins a node to the location records its geolocation belongs to."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geomesh_core.config import GeoMeshSettings
from geomesh_core.exceptions import PersistenceConflictError
from geomesh_core.geo.tables import location_code_for_country, parent_continent
from geomesh_core.models.enums import Continent
from geomesh_core.models.identifiers import LocationCode
from geomesh_core.models.responses import AutoAssignResult, RemovalResult
from geomesh_core.stores import bounded

if TYPE_CHECKING:
    from collections.abc import Callable

    from geomesh_core.models.entities import ResolverNode, RoutingDomain
    from geomesh_core.models.identifiers import NodeId, RoutingDomainId, TenantId
    from geomesh_core.models.values import GeoInfo
    from geomesh_core.stores import RoutingDomainStore

logger = logging.getLogger(__name__)


def _continent_from_text(text: str) -> Continent | None:
    text = text.lower()
    if "europe" in text:
        return Continent.EUROPE
    if "america" in text and "south" not in text:
        return Continent.NORTH_AMERICA
    if "south" in text:
        return Continent.SOUTH_AMERICA
    if "asia" in text:
        return Continent.ASIA
    if "africa" in text:
        return Continent.AFRICA
    if "oceania" in text or "australia" in text:
        return Continent.OCEANIA
    return None


def guess_continent(geo: GeoInfo) -> Continent | None:
    """Best-effort continent from the free-text continent, then country, fields."""
    if geo.continent and (continent := _continent_from_text(geo.continent)):
        return continent

    # Country names only hint at a continent when they carry its name.
    country = (geo.country or "").lower()
    if "europe" in country:
        return Continent.EUROPE
    if "america" in country and "south" not in country:
        return Continent.NORTH_AMERICA
    if "africa" in country:
        return Continent.AFRICA
    if "asia" in country:
        return Continent.ASIA
    if "oceania" in country or "australia" in country:
        return Continent.OCEANIA
    return None


def derive_location_codes(
    geo: GeoInfo | None, *, default_code: str = Continent.EUROPE.value
) -> list[LocationCode]:
    """Location codes a node with this geolocation should be assigned to.

    Unknown or loopback geolocations map to ``default_code`` so local
    deployments still get an assignment.
    """
    if geo is None or not geo.country_code:
        return []
    if geo.is_unknown:
        logger.warning("Unknown/localhost geolocation, using default location %s", default_code)
        return [LocationCode(default_code)]

    specific = location_code_for_country(geo.country_code)
    if specific is not None:
        codes = [LocationCode(specific)]
        continent = parent_continent(specific)
        if continent and continent not in codes:
            codes.append(LocationCode(continent))
        return codes

    guessed = guess_continent(geo)
    return [LocationCode(guessed.value)] if guessed else []


def _append_node(
    node_id: NodeId, codes: list[LocationCode]
) -> Callable[[RoutingDomain], list[LocationCode]]:
    def mutate(domain: RoutingDomain) -> list[LocationCode]:
        appended: list[LocationCode] = []
        for code in codes:
            location = domain.location(code)
            if location is None:
                logger.debug("Domain %s has no location %s", domain.name, code)
                continue
            if location.add_node(node_id):
                appended.append(code)
        return appended

    return mutate


def _remove_node(
    node_id: NodeId, codes: list[LocationCode] | None = None
) -> Callable[[RoutingDomain], list[LocationCode]]:
    """Drop the node from ``codes``, or from every location when none are given."""

    def mutate(domain: RoutingDomain) -> list[LocationCode]:
        return [
            location.code
            for location in domain.locations
            if (codes is None or location.code in codes) and location.remove_node(node_id)
        ]

    return mutate


class AutoRegistrationService:
    """Propagates node geolocations into every routing domain of the node's tenant."""

    def __init__(
        self, domain_store: RoutingDomainStore, settings: GeoMeshSettings | None = None
    ) -> None:
        self._domains = domain_store
        self._settings = settings or GeoMeshSettings()

    async def auto_assign(self, node: ResolverNode) -> AutoAssignResult:
        """Append ``node`` to each matching location it is not yet a member of."""
        codes = derive_location_codes(
            node.geo, default_code=self._settings.default_location_code
        )
        if not codes:
            logger.warning("No location codes derivable for node %s", node.id)
            return AutoAssignResult(node_id=node.id)

        logger.info("Node %s geolocated to %s", node.id, ", ".join(codes))
        domains = await self._tenant_domains(node.tenant_id)

        assigned = 0
        updated: list[RoutingDomainId] = []
        for domain in domains:
            appended = await self._apply(domain, _append_node(node.id, codes))
            for code in appended:
                logger.info("Assigned node %s to %s in domain %s", node.id, code, domain.name)
            if appended:
                assigned += len(appended)
                updated.append(domain.id)

        logger.info("Auto-assign for node %s complete: %d assignments", node.id, assigned)
        return AutoAssignResult(
            node_id=node.id,
            location_codes=codes,
            assigned_count=assigned,
            domains_checked=len(domains),
            domains_updated=updated,
        )

    async def remove_from_all_locations(
        self, node_id: NodeId, tenant_id: TenantId
    ) -> RemovalResult:
        """Drop ``node_id`` from every location of the tenant's active domains."""
        return await self._remove(node_id, tenant_id, None)

    async def remove_from_locations(
        self, node_id: NodeId, tenant_id: TenantId, codes: list[LocationCode]
    ) -> RemovalResult:
        """Drop ``node_id`` from just the given location codes, e.g. after it moved away."""
        return await self._remove(node_id, tenant_id, codes)

    async def _remove(
        self, node_id: NodeId, tenant_id: TenantId, codes: list[LocationCode] | None
    ) -> RemovalResult:
        removed = 0
        updated: list[RoutingDomainId] = []
        for domain in await self._tenant_domains(tenant_id):
            dropped = await self._apply(domain, _remove_node(node_id, codes))
            if dropped:
                logger.info(
                    "Removed node %s from %s in domain %s", node_id, ", ".join(dropped), domain.name
                )
                removed += len(dropped)
                updated.append(domain.id)
        return RemovalResult(node_id=node_id, removed_count=removed, domains_updated=updated)

    async def _tenant_domains(self, tenant_id: TenantId) -> list[RoutingDomain]:
        return await bounded(
            self._domains.find_domains_for_tenant(tenant_id, active_only=True),
            "find_domains_for_tenant",
            self._settings.store_timeout_seconds,
        )

    async def _apply(
        self, domain: RoutingDomain, mutate: Callable[[RoutingDomain], list[LocationCode]]
    ) -> list[LocationCode]:
        """Mutate and save a domain, re-reading and retrying on concurrent writes.

        Nothing is written when the mutation changes nothing.
        """
        timeout = self._settings.store_timeout_seconds
        attempt = 1
        while True:
            changed = mutate(domain)
            if not changed:
                return []
            try:
                await bounded(self._domains.save_domain(domain), "save_domain", timeout)
            except PersistenceConflictError:
                if attempt >= self._settings.max_conflict_retries:
                    logger.warning(
                        "Giving up on domain %s after %d conflicting saves", domain.id, attempt
                    )
                    raise
                attempt += 1
                logger.info("Domain %s changed concurrently, retrying with fresh copy", domain.id)
                domain = await bounded(self._domains.get_domain(domain.id), "get_domain", timeout)
                continue
            return changed
