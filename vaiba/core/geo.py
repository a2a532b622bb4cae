"""Great-circle distance helpers."""

import math

from vaiba.models import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: Coordinate, target: Coordinate) -> float:
    """Great-circle distance between two coordinates, in kilometers."""
    phi1, phi2 = math.radians(origin.latitude), math.radians(target.latitude)
    dphi = math.radians(target.latitude - origin.latitude)
    dlambda = math.radians(target.longitude - origin.longitude)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_KM * (2 * math.atan2(math.sqrt(a), math.sqrt(1 - a)))


def round_distance(distance_km: float) -> float:
    """Round half up to one decimal place (2.25 -> 2.3, not banker's rounding)."""
    return math.floor(distance_km * 10 + 0.5) / 10
