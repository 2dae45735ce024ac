"""Result models produced by the selection, registration and health components."""

from pydantic import BaseModel, ConfigDict, Field

from geomesh_core.models.events import NodeStatusChangedEvent
from geomesh_core.models.identifiers import LocationCode, NodeId, RoutingDomainId


class AssignmentDecision(BaseModel):
    """Which node answers for one location code. Recomputed on demand, never stored."""

    model_config = ConfigDict(frozen=True)

    location_code: LocationCode
    node_id: NodeId | None = None
    node_name: str | None = None
    node_ip: str | None = None
    is_direct: bool = False
    is_last_resort: bool = False
    distance_km: float | None = None
    distance_score: float = Field(default=0.0, ge=0)

    @property
    def has_coverage(self) -> bool:
        return self.node_id is not None


class AnycastRecord(BaseModel):
    """A location → node IP answer, ready for the distribution layer."""

    model_config = ConfigDict(frozen=True)

    name: str
    record_type: str = "A"
    value: str | None = None
    ttl_seconds: int = Field(default=60, gt=0)
    location_code: LocationCode
    node_id: NodeId | None = None
    node_name: str | None = None
    is_direct: bool = False
    is_last_resort: bool = False
    distance_km: float | None = None
    distance_score: float | None = None
    description: str = ""
    error: str | None = None


class AutoAssignResult(BaseModel):
    """Outcome of propagating a node's geolocation into its tenant's domains."""

    model_config = ConfigDict(frozen=True)

    node_id: NodeId
    location_codes: list[LocationCode] = []
    assigned_count: int = Field(default=0, ge=0)
    domains_checked: int = Field(default=0, ge=0)
    domains_updated: list[RoutingDomainId] = []

    @property
    def message(self) -> str:
        if not self.location_codes:
            return "No location codes derivable from node geolocation"
        return (
            f"Auto-assigned node to {', '.join(self.location_codes)} "
            f"across {self.domains_checked} domain(s)"
        )


class RemovalResult(BaseModel):
    """Outcome of removing a node from every location of its tenant's domains."""

    model_config = ConfigDict(frozen=True)

    node_id: NodeId
    removed_count: int = Field(default=0, ge=0)
    domains_updated: list[RoutingDomainId] = []


class HealthReport(BaseModel):
    """Summary of one reconciliation pass over the node roster."""

    model_config = ConfigDict(frozen=True)

    checked_count: int = Field(ge=0)
    active_count: int = Field(ge=0)
    inactive_count: int = Field(ge=0)
    deactivated: list[NodeId] = []
    activated: list[NodeId] = []
    events: list[NodeStatusChangedEvent] = []


class HeartbeatResult(BaseModel):
    """Returned to the polling/connect endpoints after a node checks in."""

    model_config = ConfigDict(frozen=True)

    node_id: NodeId
    was_inactive: bool
    ip_changed: bool
    auto_assignment: AutoAssignResult | None = None
    removal: RemovalResult | None = None
    health: HealthReport | None = None
