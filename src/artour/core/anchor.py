"""
Anchor transforms in the AR session's local frame.

The session runs with gravity+heading world alignment: +Y is up, -Z points
north and +X points east, with the user at the origin. Under that alignment a
geographic bearing maps directly onto a rotation about Y, so a building is
placed by pushing it `distance` meters along -Z and rotating that offset by
`-bearing` degrees.

The session must be configured for gravity+heading alignment before anchors
from this module are used; otherwise north-relative bearings are meaningless.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from artour.core.geo import GeoPoint, bearing_deg, deg_to_rad, distance_miles, miles_to_meters


def translation(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> np.ndarray:
    """Return a 4x4 homogeneous translation matrix."""
    m = np.eye(4)
    m[:3, 3] = (x, y, z)
    return m


def rotation_about_y(degrees: float) -> np.ndarray:
    """Return a 4x4 rotation about the vertical axis (right-handed, Y up)."""
    theta = deg_to_rad(degrees)
    c = math.cos(theta)
    s = math.sin(theta)
    m = np.eye(4)
    m[0, 0] = c
    m[0, 2] = s
    m[2, 0] = -s
    m[2, 2] = c
    return m


@dataclass(frozen=True, eq=False)
class AnchorTransform:
    """A rigid 4x4 transform locating a building relative to the session origin.

    Only `position` is meaningful to consumers; the rotation block is whatever
    was needed to place the translation.
    """

    matrix: np.ndarray
    bearing_deg: float
    distance_miles: float

    @classmethod
    def identity(cls) -> "AnchorTransform":
        return cls(matrix=np.eye(4), bearing_deg=0.0, distance_miles=0.0)

    @property
    def position(self) -> tuple[float, float, float]:
        x, y, z = self.matrix[:3, 3]
        # Add 0.0 to fold negative zeros from the rotation into plain zeros.
        return (float(x) + 0.0, float(y) + 0.0, float(z) + 0.0)

    @property
    def distance_meters(self) -> float:
        return miles_to_meters(self.distance_miles)

    def as_row_major(self) -> list[float]:
        return self.matrix.flatten().tolist()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnchorTransform):
            return NotImplemented
        return (
            self.bearing_deg == other.bearing_deg
            and self.distance_miles == other.distance_miles
            and bool(np.array_equal(self.matrix, other.matrix))
        )


def anchor_from_polar(bearing: float, distance_mi: float) -> AnchorTransform:
    """Build the anchor for a target `distance_mi` miles away at compass `bearing`."""
    if distance_mi == 0:
        return AnchorTransform.identity()

    distance_m = miles_to_meters(distance_mi)
    forward = translation(z=-distance_m)
    rotation = rotation_about_y(-bearing)
    matrix = np.eye(4) @ (rotation @ forward)
    return AnchorTransform(matrix=matrix, bearing_deg=bearing, distance_miles=distance_mi)


def compute_anchor(user: GeoPoint, heading_deg: float, building: GeoPoint) -> AnchorTransform:
    """Place `building` in the local frame of a user standing at `user`.

    `heading_deg` is not folded into the matrix: with gravity+heading alignment
    the frame is already north-aligned. It must still be a finite reading, since
    a session without a heading has no valid alignment.
    """
    if not math.isfinite(heading_deg):
        raise ValueError(f"heading_deg must be finite, got {heading_deg!r}")
    return anchor_from_polar(bearing_deg(user, building), distance_miles(user, building))
