"""Domain enumerations for the GeoMesh resolver fleet."""

from enum import StrEnum


class LocationType(StrEnum):
    """Kind of routing scope a location record describes."""

    CONTINENT = "continent"
    COUNTRY = "country"
    CUSTOM = "custom"


class NodeStatus(StrEnum):
    """Heartbeat-derived state of a resolver node."""

    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"


class Continent(StrEnum):
    """Continent location codes used by the adjacency table."""

    EUROPE = "europe"
    NORTH_AMERICA = "north-america"
    SOUTH_AMERICA = "south-america"
    AFRICA = "africa"
    ASIA = "asia"
    OCEANIA = "oceania"
