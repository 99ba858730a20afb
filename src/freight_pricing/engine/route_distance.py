"""
Route Distance Resolver - Estimates road distance between two locations.

Resolution order (first match wins):
1. Same province → intra-province default (30 km, lookup)
2. Known corridor for the unordered province pair (lookup)
3. Haversine between province centroids × 1.3 road factor (haversine)
4. Absolute default of 200 km (haversine)
"""
import logging
import math
from typing import Optional

from ..data.reference import ReferenceTables, default_reference_tables
from .models import DistanceEstimate, extract_province, round_int

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
ROAD_FACTOR = 1.3
INTRA_PROVINCE_KM = 30
DEFAULT_DISTANCE_KM = 200


def haversine_km(coord1: tuple[float, float], coord2: tuple[float, float]) -> float:
    """Great-circle distance between two (lat, lng) points in km."""
    lat1, lng1 = coord1
    lat2, lng2 = coord2
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


class RouteDistanceResolver:
    """Resolves a distance estimate and its provenance for a route."""

    def __init__(self, reference: Optional[ReferenceTables] = None):
        self.reference = reference or default_reference_tables()

    def resolve(self, origin: str, destination: str) -> DistanceEstimate:
        prov1 = extract_province(origin)
        prov2 = extract_province(destination)

        if prov1 == prov2:
            return DistanceEstimate(distance_km=INTRA_PROVINCE_KM, source="lookup")

        known = self.reference.corridor_distance(prov1, prov2)
        if known is not None:
            return DistanceEstimate(distance_km=known, source="lookup")

        coord1 = self.reference.province_coords.get(prov1)
        coord2 = self.reference.province_coords.get(prov2)
        if coord1 and coord2:
            road_estimate = round_int(haversine_km(coord1, coord2) * ROAD_FACTOR)
            logger.debug("No corridor for %s-%s, haversine estimate %s km", prov1, prov2, road_estimate)
            return DistanceEstimate(distance_km=road_estimate, source="haversine")

        logger.debug("Unknown provinces %s-%s, using %s km default", prov1, prov2, DEFAULT_DISTANCE_KM)
        return DistanceEstimate(distance_km=DEFAULT_DISTANCE_KM, source="haversine")
