"""Global region routing: nearest of three fixed data centers by great-circle distance.
Reads go to the regional replica, writes go through global consensus.
"""
from __future__ import annotations

from typing import List, Tuple
import logging
import math

from shard_types import GeoLocation, Region, RegionRoute

log = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

REGIONS: Tuple[Region, ...] = (
    Region(id="ap-northeast-2", name="Seoul", location=GeoLocation(37.5665, 126.9780)),
    Region(id="us-east-1", name="New York (Virginia)", location=GeoLocation(38.9519, -77.4480)),
    Region(id="eu-central-1", name="Frankfurt", location=GeoLocation(50.1109, 8.6821)),
)


def haversine_distance(a: GeoLocation, b: GeoLocation) -> float:
    """Great-circle distance in km."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # rounding, or a latitude past a pole, can push h outside [0, 1]
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, max(0.0, h))))


def route_to_region(location: GeoLocation) -> RegionRoute:
    best = REGIONS[0]
    best_d = haversine_distance(location, best.location)
    for region in REGIONS[1:]:
        d = haversine_distance(location, region.location)
        if d < best_d:
            best, best_d = region, d
    log.debug("routed (%.4f, %.4f) -> %s %.0fkm", location.latitude, location.longitude, best.id, best_d)
    return RegionRoute(region=best.id, region_name=best.name, distance_km=math.floor(best_d + 0.5))


def get_available_regions() -> List[Region]:
    # Region is frozen, so handing out the shared instances is safe
    return list(REGIONS)
