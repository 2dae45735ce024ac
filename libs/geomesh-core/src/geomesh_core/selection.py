"""Resolver selection — picks the node that answers for a location code.

Policy, in priority order:

1. only active nodes with an IP address are eligible;
2. a node geolocated in the requested country answers directly;
3. for ``ua`` nodes located in ``RU`` are excluded unless nothing else is left,
   in which case the answer is flagged as a last resort;
4. the remaining candidates are ranked by great-circle distance from the
   location's centre, or by continent hops when either side lacks coordinates.

The haversine score (0-10) and the hop score (0-4, 999 when unknown) share one
ranking even though their scales differ; that mix is intentional and kept.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from geomesh_core.exceptions import InvalidInputError
from geomesh_core.geo.distance import distance_km
from geomesh_core.geo.tables import (
    UNKNOWN_DISTANCE,
    continent_of,
    coordinates_of,
    location_distance,
)
from geomesh_core.models.identifiers import LocationCode
from geomesh_core.models.responses import AssignmentDecision

if TYPE_CHECKING:
    from collections.abc import Sequence

    from geomesh_core.models.entities import ResolverNode
    from geomesh_core.models.values import Coordinates

logger = logging.getLogger(__name__)

KM_PER_SCORE_UNIT = 2000.0
MAX_DISTANCE_SCORE = 10.0

PROTECTED_LOCATION = "ua"
EXCLUDED_COUNTRY = "RU"


def normalize_location_code(location_code: object) -> LocationCode:
    """Lower-case and strip a location code, rejecting empty or non-string input."""
    if not isinstance(location_code, str) or not location_code.strip():
        msg = f"Invalid location code: {location_code!r}"
        raise InvalidInputError(msg)
    return LocationCode(location_code.strip().lower())


def _decision(
    code: LocationCode,
    node: ResolverNode,
    *,
    is_direct: bool,
    score: float,
    km: float | None,
    is_last_resort: bool = False,
) -> AssignmentDecision:
    return AssignmentDecision(
        location_code=code,
        node_id=node.id,
        node_name=node.name,
        node_ip=node.ip_address,
        is_direct=is_direct,
        is_last_resort=is_last_resort,
        distance_km=km,
        distance_score=score,
    )


def _candidates(
    code: LocationCode, eligible: list[ResolverNode]
) -> tuple[list[ResolverNode], bool]:
    """Apply the location's exclusion policy. Returns (candidates, is_last_resort)."""
    if code != PROTECTED_LOCATION:
        return eligible, False

    allowed = [node for node in eligible if node.country_code != EXCLUDED_COUNTRY]
    if allowed:
        logger.debug("Found %d non-%s nodes for %s", len(allowed), EXCLUDED_COUNTRY, code)
        return allowed, False
    logger.info("No non-%s nodes for %s, using last resort", EXCLUDED_COUNTRY, code)
    return eligible, True


def _score(
    code: LocationCode, target: Coordinates | None, node: ResolverNode
) -> tuple[float, float | None]:
    """Return (distance_score, distance_km) for one candidate."""
    coords = node.geo.coordinates if node.geo is not None else None
    if target is not None and coords is not None:
        km = distance_km(target.lat, target.lon, coords.lat, coords.lon)
        return min(MAX_DISTANCE_SCORE, km / KM_PER_SCORE_UNIT), float(round(km))

    country = node.country_code
    if not country:
        return UNKNOWN_DISTANCE, None
    node_location = continent_of(country) or country.lower()
    return location_distance(code, node_location), None


def select_node(
    location_code: str, roster: Sequence[ResolverNode]
) -> AssignmentDecision | None:
    """Pick the best node for ``location_code``, or None when no node is eligible."""
    code = normalize_location_code(location_code)
    if roster is None:
        msg = "A node roster is required"
        raise InvalidInputError(msg)

    eligible = [node for node in roster if node.is_eligible]
    if not eligible:
        return None

    for node in eligible:
        if node.country_code is not None and node.country_code.lower() == code:
            return _decision(code, node, is_direct=True, score=0.0, km=0.0)

    candidates, is_last_resort = _candidates(code, eligible)
    target = coordinates_of(code)

    # sorted() is stable, so equal scores keep roster order.
    ranked = sorted(
        ((node, *_score(code, target, node)) for node in candidates),
        key=lambda item: item[1],
    )
    node, score, km = ranked[0]
    return _decision(
        code, node, is_direct=False, score=score, km=km, is_last_resort=is_last_resort
    )
