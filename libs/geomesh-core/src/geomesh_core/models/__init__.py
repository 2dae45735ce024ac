"""GeoMesh domain model — re-exports all public types."""

from geomesh_core.models.entities import (
    DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
    GEO_HISTORY_LIMIT,
    LocationRecord,
    ResolverNode,
    RoutingDomain,
)
from geomesh_core.models.enums import Continent, LocationType, NodeStatus
from geomesh_core.models.events import NodeStatusChangedEvent
from geomesh_core.models.identifiers import (
    LocationCode,
    NodeId,
    RoutingDomainId,
    TenantId,
)
from geomesh_core.models.responses import (
    AnycastRecord,
    AssignmentDecision,
    AutoAssignResult,
    HealthReport,
    HeartbeatResult,
    RemovalResult,
)
from geomesh_core.models.values import (
    UNKNOWN_COUNTRY_CODE,
    Coordinates,
    GeoHistoryEntry,
    GeoInfo,
    NodeActivity,
)

__all__ = [
    # Identifiers
    "LocationCode",
    "NodeId",
    "RoutingDomainId",
    "TenantId",
    # Enums
    "Continent",
    "LocationType",
    "NodeStatus",
    # Value Objects
    "UNKNOWN_COUNTRY_CODE",
    "Coordinates",
    "GeoHistoryEntry",
    "GeoInfo",
    "NodeActivity",
    # Entities
    "DEFAULT_INACTIVITY_THRESHOLD_SECONDS",
    "GEO_HISTORY_LIMIT",
    "LocationRecord",
    "ResolverNode",
    "RoutingDomain",
    # Responses
    "AnycastRecord",
    "AssignmentDecision",
    "AutoAssignResult",
    "HealthReport",
    "HeartbeatResult",
    "RemovalResult",
    # Events
    "NodeStatusChangedEvent",
]
