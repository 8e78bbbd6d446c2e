from __future__ import annotations

import math
from dataclasses import dataclass

"""
Geodesy helpers.

Distances are in miles (the tour's proximity radii are expressed in miles) and
bearings in degrees clockwise from north. Every degree/radian conversion in the
package goes through `deg_to_rad` / `rad_to_deg`.
"""

EARTH_RADIUS_MILES = 3959.0
METERS_PER_MILE = 1609.344


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lon: float


def deg_to_rad(degrees: float) -> float:
    return degrees * math.pi / 180.0


def rad_to_deg(radians: float) -> float:
    return radians * 180.0 / math.pi


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def distance_miles(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in miles (haversine, Earth radius 3959 mi).

    Identical points give exactly 0.0 and the result is symmetric in `a`/`b`.
    """
    lat1 = deg_to_rad(a.lat)
    lat2 = deg_to_rad(b.lat)
    dlat = lat2 - lat1
    dlon = deg_to_rad(b.lon) - deg_to_rad(a.lon)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push h a hair outside [0, 1] near antipodes.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_MILES * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_deg(origin: GeoPoint, target: GeoPoint) -> float:
    """Initial compass bearing from `origin` to `target`, in (-180, 180].

    Coincident points have no defined direction; they yield 0.0.
    """
    if origin == target:
        return 0.0

    lat1 = deg_to_rad(origin.lat)
    lat2 = deg_to_rad(target.lat)
    dlon = deg_to_rad(target.lon) - deg_to_rad(origin.lon)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    bearing = rad_to_deg(math.atan2(y, x))
    if bearing <= -180.0:
        bearing += 360.0
    # Normalize -0.0 so callers comparing against 0 see a plain zero.
    return bearing + 0.0
