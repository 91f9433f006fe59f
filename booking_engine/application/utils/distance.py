from __future__ import annotations

import math

from booking_engine.domain.entities.cart import GeoPoint

EARTH_RADIUS_KM = 6371.0


def distance_km(origin: GeoPoint | None, destination: GeoPoint | None) -> float | None:
    """
    Great-circle distance between two points, rounded to one decimal.

    Returns None when either point is missing or carries a NaN coordinate.
    """
    if origin is None or destination is None:
        return None
    coords = (origin.latitude, origin.longitude, destination.latitude, destination.longitude)
    if any(c is None or math.isnan(c) for c in coords):
        return None

    lat1, lon1, lat2, lon2 = (math.radians(c) for c in coords)
    d_lat = lat2 - lat1
    d_lon = lon2 - lon1
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 1)


def worker_distance_km(address: GeoPoint | None, worker_locations: list[GeoPoint | None]) -> float | None:
    """Distance to the first bound worker with a known location."""
    for location in worker_locations:
        if location is not None:
            return distance_km(location, address)
    return None
