"""Node health — derives active/inactive state from heartbeat recency."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from geomesh_core.config import GeoMeshSettings
from geomesh_core.exceptions import PersistenceConflictError
from geomesh_core.models.enums import NodeStatus
from geomesh_core.models.events import NodeStatusChangedEvent
from geomesh_core.models.identifiers import NodeId
from geomesh_core.models.responses import HealthReport
from geomesh_core.models.values import NodeActivity
from geomesh_core.stores import bounded

if TYPE_CHECKING:
    from geomesh_core.models.entities import ResolverNode
    from geomesh_core.stores import NodeRosterStore

logger = logging.getLogger(__name__)


def check_activity(node: ResolverNode, now: datetime) -> NodeActivity:
    """Evaluate whether ``node`` heartbeated within its inactivity threshold."""
    if node.last_heartbeat is None:
        status = NodeStatus.INACTIVE if node.connected else NodeStatus.PENDING
        return NodeActivity(status=status, is_active=False)

    elapsed = (now - node.last_heartbeat).total_seconds()
    is_active = elapsed < node.inactivity_threshold_seconds
    return NodeActivity(
        status=NodeStatus.ACTIVE if is_active else NodeStatus.INACTIVE,
        is_active=is_active,
        seconds_since_heartbeat=elapsed,
    )


class HealthMonitor:
    """Reconciles the stored ``active`` flag of every node with its heartbeat state."""

    def __init__(
        self, node_store: NodeRosterStore, settings: GeoMeshSettings | None = None
    ) -> None:
        self._nodes = node_store
        self._settings = settings or GeoMeshSettings()

    @property
    def _timeout(self) -> float:
        return self._settings.store_timeout_seconds

    async def reconcile(self, now: datetime | None = None) -> HealthReport:
        """Scan the full roster and flip ``active`` wherever it disagrees with heartbeats."""
        now = now or datetime.now(UTC)
        nodes = await bounded(self._nodes.list_nodes(), "list_nodes", self._timeout)

        active_count = 0
        deactivated: list[NodeId] = []
        activated: list[NodeId] = []
        events: list[NodeStatusChangedEvent] = []

        for node in nodes:
            activity = check_activity(node, now)
            if activity.is_active:
                active_count += 1
            if node.active == activity.is_active:
                continue

            try:
                await bounded(
                    self._nodes.update_node(
                        node.id,
                        expected={"active": node.active, "last_heartbeat": node.last_heartbeat},
                        active=activity.is_active,
                    ),
                    "update_node",
                    self._timeout,
                )
            except PersistenceConflictError:
                logger.debug("Node %s changed since the health scan, leaving it as is", node.id)
                continue
            (activated if activity.is_active else deactivated).append(node.id)
            events.append(
                NodeStatusChangedEvent(
                    node_id=node.id,
                    old_status=NodeStatus.ACTIVE if node.active else NodeStatus.INACTIVE,
                    new_status=activity.status,
                    timestamp=now,
                )
            )

        if deactivated:
            logger.info("Deactivated nodes: %s", ", ".join(deactivated))
        logger.debug(
            "Health check: %d nodes, %d active, %d inactive",
            len(nodes),
            active_count,
            len(nodes) - active_count,
        )
        return HealthReport(
            checked_count=len(nodes),
            active_count=active_count,
            inactive_count=len(nodes) - active_count,
            deactivated=deactivated,
            activated=activated,
            events=events,
        )

    async def activate(self, node_id: NodeId, now: datetime | None = None) -> bool:
        """Record a heartbeat and mark the node active. Returns True if it was inactive."""
        node = await bounded(self._nodes.get_node(node_id), "get_node", self._timeout)
        await bounded(
            self._nodes.update_node(node_id, active=True, last_heartbeat=now or datetime.now(UTC)),
            "update_node",
            self._timeout,
        )
        return not node.active

    async def deactivate(self, node_id: NodeId) -> bool:
        """Mark the node inactive (connection lost). Returns True if it was active."""
        node = await bounded(self._nodes.get_node(node_id), "get_node", self._timeout)
        if not node.active:
            return False
        await bounded(self._nodes.update_node(node_id, active=False), "update_node", self._timeout)
        return True
