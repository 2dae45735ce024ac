"""Assignment builder — resolves every location of a routing domain to a node."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geomesh_core.config import GeoMeshSettings
from geomesh_core.models.responses import AnycastRecord, AssignmentDecision
from geomesh_core.selection import select_node
from geomesh_core.stores import bounded

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from geomesh_core.models.entities import ResolverNode, RoutingDomain
    from geomesh_core.stores import NodeRosterStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60
NO_COVERAGE_ERROR = "No node available for this location"


def build_assignments(
    domain: RoutingDomain, roster: Sequence[ResolverNode]
) -> list[AssignmentDecision]:
    """One decision per location, in domain order. Uncovered locations get node_id=None."""
    decisions: list[AssignmentDecision] = []
    for location in domain.locations:
        decision = select_node(location.code, roster)
        if decision is None:
            decision = AssignmentDecision(location_code=location.code)
        decisions.append(decision)
    return decisions


def describe(decision: AssignmentDecision) -> str:
    """Human-readable reason a node was chosen for a location."""
    if not decision.has_coverage:
        return NO_COVERAGE_ERROR
    if decision.is_direct:
        return f"Direct: {decision.node_name}"
    prefix = "Last Resort" if decision.is_last_resort else "Nearest"
    if decision.distance_km:
        return f"{prefix}: {decision.node_name} ({decision.distance_km:.0f}km)"
    return f"{prefix}: {decision.node_name} (distance: {decision.distance_score:g})"


def to_anycast_record(
    decision: AssignmentDecision, *, ttl_seconds: int = DEFAULT_TTL_SECONDS
) -> AnycastRecord:
    if not decision.has_coverage:
        return AnycastRecord(
            name=decision.location_code,
            ttl_seconds=ttl_seconds,
            location_code=decision.location_code,
            description=NO_COVERAGE_ERROR,
            error=NO_COVERAGE_ERROR,
        )
    return AnycastRecord(
        name=decision.location_code,
        value=decision.node_ip,
        ttl_seconds=ttl_seconds,
        location_code=decision.location_code,
        node_id=decision.node_id,
        node_name=decision.node_name,
        is_direct=decision.is_direct,
        is_last_resort=decision.is_last_resort,
        distance_km=decision.distance_km,
        distance_score=decision.distance_score,
        description=describe(decision),
    )


def build_anycast_records(
    domain: RoutingDomain,
    roster: Sequence[ResolverNode],
    *,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
) -> list[AnycastRecord]:
    """Build the anycast record set for a domain, keeping no-coverage entries."""
    records = [
        to_anycast_record(decision, ttl_seconds=ttl_seconds)
        for decision in build_assignments(domain, roster)
    ]
    for record in records:
        if record.value is None:
            logger.warning("Domain %s: %s has no node", domain.name, record.location_code)
        else:
            logger.debug(
                "Domain %s: %s -> %s (%s)",
                domain.name,
                record.location_code,
                record.value,
                record.description,
            )
    logger.info(
        "Domain %s: generated %d/%d anycast records from %d nodes",
        domain.name,
        len(servable_records(records)),
        len(records),
        len(roster),
    )
    return records


def servable_records(records: Iterable[AnycastRecord]) -> list[AnycastRecord]:
    """Only the records that currently have an answer."""
    return [record for record in records if record.value is not None]


class AssignmentService:
    """Resolves routing domains against the current roster of eligible nodes."""

    def __init__(
        self, node_store: NodeRosterStore, settings: GeoMeshSettings | None = None
    ) -> None:
        self._nodes = node_store
        self._settings = settings or GeoMeshSettings()

    async def _roster(self) -> list[ResolverNode]:
        return await bounded(
            self._nodes.find_active_nodes_with_ip(),
            "find_active_nodes_with_ip",
            self._settings.store_timeout_seconds,
        )

    async def assignments(self, domain: RoutingDomain) -> list[AssignmentDecision]:
        return build_assignments(domain, await self._roster())

    async def anycast_records(self, domain: RoutingDomain) -> list[AnycastRecord]:
        """Anycast records for ``domain`` using the configured TTL."""
        return build_anycast_records(
            domain, await self._roster(), ttl_seconds=self._settings.anycast_ttl_seconds
        )
