from __future__ import annotations

import math

import pytest

from artour.core.geo import EARTH_RADIUS_MILES, GeoPoint
from artour.domain.models import Building

MILES_PER_DEGREE_LAT = EARTH_RADIUS_MILES * math.pi / 180.0

BURRUSS = GeoPoint(lat=37.2280, lon=-80.4239)


def south_of(point: GeoPoint, miles: float) -> GeoPoint:
    """A point `miles` due south of `point` (great-circle distance along the meridian)."""
    return GeoPoint(lat=point.lat - miles / MILES_PER_DEGREE_LAT, lon=point.lon)


@pytest.fixture
def burruss() -> Building:
    return Building(
        id="burruss-hall",
        name="Burruss Hall",
        location=BURRUSS,
        image_url="https://example.test/img/burruss.jpg",
        description_url="https://example.test/desc/burruss.txt",
    )


@pytest.fixture
def building_records() -> list[dict]:
    return [
        {
            "id": "burruss-hall",
            "name": "Burruss Hall",
            "latitude": 37.2280,
            "longitude": -80.4239,
            "imageUrl": "https://example.test/img/burruss.jpg",
            "descriptionUrl": "https://example.test/desc/burruss.txt",
        },
        {
            "id": "torgersen-hall",
            "name": "Torgersen Hall",
            "latitude": 37.2290,
            "longitude": -80.4239,
        },
    ]
