"""End-to-end workflow: connect nodes → auto-register → build anycast records."""

from datetime import UTC, datetime, timedelta

import pytest

from geomesh_core.assignments import build_anycast_records, servable_records
from geomesh_core.lifecycle import NodeLifecycleService
from geomesh_core.models.entities import RoutingDomain
from geomesh_core.models.identifiers import NodeId, RoutingDomainId
from geomesh_core.registration import AutoRegistrationService
from geomesh_storage.repositories.node import NodeRepository
from geomesh_storage.repositories.routing_domain import RoutingDomainRepository
from geomesh_testing import StaticGeoLookup, make_domain, make_geo, make_node

pytestmark = pytest.mark.integration

BERLIN_IP = "198.51.100.7"
DALLAS_IP = "203.0.113.20"


def _members(domain: RoutingDomain, code: str) -> list[NodeId]:
    location = domain.location(code)
    assert location is not None
    return location.assigned_node_ids


class TestConnectRegisterResolve:
    async def test_full_workflow(
        self, node_repo: NodeRepository, domain_repo: RoutingDomainRepository
    ) -> None:
        """Two nodes connect, register themselves, and answer for every location."""
        now = datetime.now(UTC)
        geo_lookup = StaticGeoLookup(
            {
                BERLIN_IP: make_geo("DE", 52.52, 13.405, country="Germany", city="Berlin"),
                DALLAS_IP: make_geo("US", 32.78, -96.8, country="United States", city="Dallas"),
            }
        )
        service = NodeLifecycleService(node_repo, domain_repo, geo_lookup)

        # 1. Provision a domain and two nodes that have never connected
        await domain_repo.create(make_domain("d1", "us", "north-america", "europe", "ua"))
        for node_id in ("edge-de", "edge-us"):
            await node_repo.create(
                make_node(
                    node_id, active=False, connected=False, ip_address=None, country_code=None
                )
            )

        # 2. Both nodes connect and are auto-registered
        de = await service.connect(NodeId("edge-de"), BERLIN_IP, now)
        us = await service.connect(NodeId("edge-us"), DALLAS_IP, now)
        assert de.auto_assignment is not None
        assert de.auto_assignment.assigned_count == 1
        assert us.auto_assignment is not None
        assert us.auto_assignment.assigned_count == 2

        domain = await domain_repo.get_domain(RoutingDomainId("d1"))
        assert domain.version == 2
        assert _members(domain, "europe") == ["edge-de"]
        assert _members(domain, "us") == ["edge-us"]

        # 3. Every location resolves to the closest eligible node
        roster = await node_repo.find_active_nodes_with_ip()
        records = build_anycast_records(domain, roster)
        answers = {r.location_code: r.value for r in records}
        assert answers == {
            "us": DALLAS_IP,
            "north-america": DALLAS_IP,
            "europe": BERLIN_IP,
            "ua": BERLIN_IP,
        }

        # 4. The German node stops polling and drops out of the answers
        later = now + timedelta(minutes=10)
        result = await service.record_heartbeat(NodeId("edge-us"), DALLAS_IP, later)
        assert result.health is not None
        assert result.health.deactivated == ["edge-de"]

        roster = await node_repo.find_active_nodes_with_ip()
        records = servable_records(build_anycast_records(domain, roster))
        assert {r.value for r in records} == {DALLAS_IP}

    async def test_reregistration_is_idempotent(
        self, node_repo: NodeRepository, domain_repo: RoutingDomainRepository
    ) -> None:
        await domain_repo.create(make_domain("d1", "us", "north-america"))
        node = await node_repo.create(make_node("edge-us", country_code="US"))
        registration = AutoRegistrationService(domain_repo)

        first = await registration.auto_assign(node)
        second = await registration.auto_assign(node)

        assert first.assigned_count == 2
        assert second.assigned_count == 0
        domain = await domain_repo.get_domain(RoutingDomainId("d1"))
        assert domain.version == 1
        assert _members(domain, "us") == ["edge-us"]
