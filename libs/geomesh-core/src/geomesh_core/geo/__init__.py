"""Geographic helpers: distance, static location tables and IP geolocation."""

from geomesh_core.geo.distance import EARTH_RADIUS_KM, distance_km
from geomesh_core.geo.tables import (
    UNKNOWN_DISTANCE,
    continent_of,
    coordinates_of,
    hop_distance,
    location_code_for_country,
    location_distance,
    parent_continent,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "UNKNOWN_DISTANCE",
    "continent_of",
    "coordinates_of",
    "distance_km",
    "hop_distance",
    "location_code_for_country",
    "location_distance",
    "parent_continent",
]
