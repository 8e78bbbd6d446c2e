"""
Domain models.

These types are the contract between the dataset loader, the proximity engine
and the scene/overlay layer:
- catalog entities (`Building`), validated with Pydantic,
- the per-building display state (`DisplayState`),
- engine output (`TransitionEvent`, `RecordError`).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from artour.core.anchor import AnchorTransform
from artour.core.geo import GeoPoint


class DisplayState(str, Enum):
    """What the overlay shows for a building."""

    HIDDEN = "hidden"
    LABEL = "label"
    DETAIL = "detail"


class Building(BaseModel):
    """A campus building with a stable identifier, decoupled from its display name."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    location: GeoPoint
    image_url: str | None = None
    description_url: str | None = None

    @field_validator("location")
    @classmethod
    def _validate_location(cls, location: GeoPoint) -> GeoPoint:
        if not (-90.0 <= location.lat <= 90.0):
            raise ValueError(f"latitude out of range: {location.lat}")
        if not (-180.0 <= location.lon <= 180.0):
            raise ValueError(f"longitude out of range: {location.lon}")
        return location


class RecordError(BaseModel):
    """A dataset record that was skipped, and why."""

    index: int
    record_id: str | None = None
    reason: str


@dataclass(frozen=True)
class TransitionEvent:
    """A building changed display state during one engine update."""

    building_id: str
    old_state: DisplayState
    new_state: DisplayState
    anchor: AnchorTransform

    def as_dict(self) -> dict[str, Any]:
        return {
            "building_id": self.building_id,
            "old_state": self.old_state.value,
            "new_state": self.new_state.value,
            "position": list(self.anchor.position),
            "bearing_deg": self.anchor.bearing_deg,
            "distance_miles": self.anchor.distance_miles,
        }
