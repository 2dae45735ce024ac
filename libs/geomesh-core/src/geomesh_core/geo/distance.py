"""Great-circle distance between two coordinates."""

from math import atan2, cos, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in kilometres. Inputs are decimal degrees and are not validated."""
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)
    a = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    a = min(1.0, a)
    return EARTH_RADIUS_KM * 2 * atan2(sqrt(a), sqrt(1 - a))
