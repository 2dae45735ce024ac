"""Frozen value objects for the GeoMesh domain model."""

from pydantic import AwareDatetime, BaseModel, ConfigDict, field_validator

from geomesh_core.models.enums import NodeStatus

UNKNOWN_COUNTRY_CODE = "XX"


class Coordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class GeoInfo(BaseModel):
    """IP-derived geolocation of a resolver node."""

    model_config = ConfigDict(frozen=True)

    country_code: str | None = None
    country: str | None = None
    region: str | None = None
    city: str | None = None
    continent: str | None = None
    timezone: str | None = None
    isp: str | None = None
    org: str | None = None
    asn: str | None = None
    lat: float | None = None
    lon: float | None = None

    @field_validator("country_code")
    @classmethod
    def _upper_country_code(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().upper()
        return value or None

    @property
    def coordinates(self) -> Coordinates | None:
        if self.lat is None or self.lon is None:
            return None
        return Coordinates(lat=self.lat, lon=self.lon)

    @property
    def is_unknown(self) -> bool:
        """True for loopback/unresolvable addresses (the lookup's sentinel values)."""
        return (
            self.country_code == UNKNOWN_COUNTRY_CODE
            or self.country == "Unknown"
            or self.city == "Localhost"
        )


class GeoHistoryEntry(BaseModel):
    """A previous address of a node, kept when its observed IP changes."""

    model_config = ConfigDict(frozen=True)

    ip_address: str
    changed_at: AwareDatetime
    country: str | None = None
    city: str | None = None
    isp: str | None = None


class NodeActivity(BaseModel):
    """Result of evaluating a single node's heartbeat recency."""

    model_config = ConfigDict(frozen=True)

    status: NodeStatus
    is_active: bool
    seconds_since_heartbeat: float | None = None
