"""Tests for heartbeat-based activity checks and roster reconciliation."""

from datetime import datetime, timedelta

import pytest

from geomesh_core.exceptions import NodeNotFoundError
from geomesh_core.health import HealthMonitor, check_activity
from geomesh_core.models.entities import ResolverNode
from geomesh_core.models.enums import NodeStatus
from geomesh_core.models.identifiers import NodeId
from geomesh_testing import InMemoryNodeStore, make_node


class TestCheckActivity:
    def test_recent_heartbeat_is_active(self, now: datetime) -> None:
        node = make_node(last_heartbeat=now - timedelta(seconds=10))
        activity = check_activity(node, now)
        assert activity.is_active
        assert activity.status == NodeStatus.ACTIVE
        assert activity.seconds_since_heartbeat == pytest.approx(10)

    def test_stale_heartbeat_is_inactive(self, now: datetime) -> None:
        node = make_node(last_heartbeat=now - timedelta(seconds=400))
        activity = check_activity(node, now)
        assert not activity.is_active
        assert activity.status == NodeStatus.INACTIVE

    def test_threshold_itself_is_inactive(self, now: datetime) -> None:
        node = make_node(last_heartbeat=now - timedelta(seconds=300))
        assert not check_activity(node, now).is_active

    def test_custom_threshold(self, now: datetime) -> None:
        node = make_node(
            last_heartbeat=now - timedelta(seconds=400), inactivity_threshold_seconds=600
        )
        assert check_activity(node, now).is_active

    def test_never_seen_node_is_pending(self, now: datetime) -> None:
        node = make_node(active=False, connected=False)
        activity = check_activity(node, now)
        assert activity.status == NodeStatus.PENDING
        assert not activity.is_active
        assert activity.seconds_since_heartbeat is None

    def test_connected_without_heartbeat_is_inactive(self, now: datetime) -> None:
        node = make_node(active=False, connected=True)
        assert check_activity(node, now).status == NodeStatus.INACTIVE


class TestReconcile:
    async def test_flips_stale_and_fresh_nodes(self, now: datetime) -> None:
        store = InMemoryNodeStore(
            [
                make_node("stale", active=True, last_heartbeat=now - timedelta(seconds=400)),
                make_node("fresh", active=False, last_heartbeat=now - timedelta(seconds=5)),
                make_node("steady", active=True, last_heartbeat=now - timedelta(seconds=30)),
                make_node("pending", active=False, connected=False),
            ]
        )
        report = await HealthMonitor(store).reconcile(now)

        assert report.checked_count == 4
        assert report.active_count == 2
        assert report.inactive_count == 2
        assert report.deactivated == ["stale"]
        assert report.activated == ["fresh"]
        assert not (await store.get_node(NodeId("stale"))).active
        assert (await store.get_node(NodeId("fresh"))).active

    async def test_emits_status_change_events(self, now: datetime) -> None:
        store = InMemoryNodeStore(
            [make_node("stale", active=True, last_heartbeat=now - timedelta(seconds=400))]
        )
        report = await HealthMonitor(store).reconcile(now)

        [event] = report.events
        assert event.node_id == "stale"
        assert event.old_status == NodeStatus.ACTIVE
        assert event.new_status == NodeStatus.INACTIVE
        assert event.timestamp == now

    async def test_writes_only_changed_nodes(self, now: datetime) -> None:
        store = InMemoryNodeStore(
            [
                make_node("a", active=True, last_heartbeat=now - timedelta(seconds=1)),
                make_node("b", active=True, last_heartbeat=now - timedelta(seconds=900)),
            ]
        )
        await HealthMonitor(store).reconcile(now)
        assert store.update_calls == [(NodeId("b"), {"active": False})]

    async def test_empty_roster(self, node_store: InMemoryNodeStore, now: datetime) -> None:
        report = await HealthMonitor(node_store).reconcile(now)
        assert report.checked_count == 0
        assert report.events == []


class _HeartbeatDuringScanStore(InMemoryNodeStore):
    """Lets a node check in right after the roster snapshot is taken."""

    def __init__(self, nodes: list[ResolverNode], heartbeat_at: datetime) -> None:
        super().__init__(nodes)
        self._heartbeat_at = heartbeat_at

    async def list_nodes(self) -> list[ResolverNode]:
        snapshot = await super().list_nodes()
        for node in snapshot:
            await self.update_node(node.id, last_heartbeat=self._heartbeat_at, active=True)
        return snapshot


class TestReconcileConcurrentHeartbeat:
    async def test_heartbeat_after_scan_is_not_overwritten(self, now: datetime) -> None:
        store = _HeartbeatDuringScanStore(
            [make_node("n1", active=True, last_heartbeat=now - timedelta(minutes=10))], now
        )

        report = await HealthMonitor(store).reconcile(now)

        node = await store.get_node(NodeId("n1"))
        assert node.active
        assert node.last_heartbeat == now
        assert report.deactivated == []
        assert report.events == []

    async def test_other_nodes_still_flip(self, now: datetime) -> None:
        store = InMemoryNodeStore(
            [
                make_node("n1", active=True, last_heartbeat=now - timedelta(minutes=10)),
                make_node("n2", active=True, last_heartbeat=now - timedelta(minutes=10)),
            ]
        )
        original_list = store.list_nodes

        async def list_then_heartbeat_n1() -> list[ResolverNode]:
            snapshot = await original_list()
            await store.update_node(NodeId("n1"), last_heartbeat=now)
            return snapshot

        store.list_nodes = list_then_heartbeat_n1  # type: ignore[method-assign]
        report = await HealthMonitor(store).reconcile(now)

        assert report.deactivated == ["n2"]
        assert (await store.get_node(NodeId("n1"))).active
        assert not (await store.get_node(NodeId("n2"))).active


class TestActivateDeactivate:
    async def test_activate_inactive_node(self, now: datetime) -> None:
        store = InMemoryNodeStore([make_node("n1", active=False)])
        assert await HealthMonitor(store).activate(NodeId("n1"), now)
        node = await store.get_node(NodeId("n1"))
        assert node.active
        assert node.last_heartbeat == now

    async def test_activate_active_node(self, now: datetime) -> None:
        store = InMemoryNodeStore([make_node("n1")])
        assert not await HealthMonitor(store).activate(NodeId("n1"), now)

    async def test_deactivate(self) -> None:
        store = InMemoryNodeStore([make_node("n1")])
        monitor = HealthMonitor(store)
        assert await monitor.deactivate(NodeId("n1"))
        assert not (await store.get_node(NodeId("n1"))).active
        assert not await monitor.deactivate(NodeId("n1"))

    async def test_unknown_node(self, node_store: InMemoryNodeStore) -> None:
        with pytest.raises(NodeNotFoundError):
            await HealthMonitor(node_store).deactivate(NodeId("ghost"))
