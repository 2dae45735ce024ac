"""Core entities for the GeoMesh domain model."""

from pydantic import AwareDatetime, BaseModel, Field, field_validator, model_validator

from geomesh_core.models.enums import LocationType
from geomesh_core.models.identifiers import LocationCode, NodeId, RoutingDomainId, TenantId
from geomesh_core.models.values import GeoHistoryEntry, GeoInfo

DEFAULT_INACTIVITY_THRESHOLD_SECONDS = 300
GEO_HISTORY_LIMIT = 10


class ResolverNode(BaseModel):
    """An edge resolver process, tracked by heartbeat and IP geolocation."""

    id: NodeId
    tenant_id: TenantId
    name: str = Field(min_length=1)
    active: bool = False
    connected: bool = False
    last_heartbeat: AwareDatetime | None = None
    connected_at: AwareDatetime | None = None
    inactivity_threshold_seconds: int = Field(default=DEFAULT_INACTIVITY_THRESHOLD_SECONDS, gt=0)
    polling_interval_seconds: int = Field(default=60, gt=0)
    ip_address: str | None = None
    geo: GeoInfo | None = None
    geo_history: list[GeoHistoryEntry] = Field(default=[], max_length=GEO_HISTORY_LIMIT)

    @property
    def country_code(self) -> str | None:
        return self.geo.country_code if self.geo is not None else None

    @property
    def is_eligible(self) -> bool:
        """Only active nodes with a known address may answer for a location."""
        return self.active and bool(self.ip_address)


class LocationRecord(BaseModel):
    """A routing scope inside a domain and the nodes assigned to it."""

    code: LocationCode = Field(min_length=1)
    display_name: str
    type: LocationType
    assigned_node_ids: list[NodeId] = []

    @field_validator("code")
    @classmethod
    def _lower_code(cls, value: str) -> str:
        return LocationCode(value.strip().lower())

    @field_validator("assigned_node_ids")
    @classmethod
    def _unique_members(cls, value: list[NodeId]) -> list[NodeId]:
        return list(dict.fromkeys(value))

    def has_node(self, node_id: NodeId) -> bool:
        return node_id in self.assigned_node_ids

    def add_node(self, node_id: NodeId) -> bool:
        """Append a node id unless it is already a member. Returns True if appended."""
        if node_id in self.assigned_node_ids:
            return False
        self.assigned_node_ids.append(node_id)
        return True

    def remove_node(self, node_id: NodeId) -> bool:
        """Drop a node id if present. Returns True if removed."""
        if node_id not in self.assigned_node_ids:
            return False
        self.assigned_node_ids.remove(node_id)
        return True


class RoutingDomain(BaseModel):
    """A tenant-owned domain with its ordered location registry."""

    id: RoutingDomainId
    tenant_id: TenantId
    name: str = Field(min_length=1)
    active: bool = True
    version: int = Field(default=0, ge=0)
    locations: list[LocationRecord] = []

    @model_validator(mode="after")
    def _check_unique_codes(self) -> "RoutingDomain":
        codes = [loc.code for loc in self.locations]
        if len(codes) != len(set(codes)):
            msg = f"Duplicate location codes in routing domain {self.id!r}"
            raise ValueError(msg)
        return self

    def location(self, code: str) -> LocationRecord | None:
        """Find a location record by code, case-insensitively."""
        wanted = code.strip().lower()
        for loc in self.locations:
            if loc.code == wanted:
                return loc
        return None
