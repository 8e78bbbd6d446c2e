"""
Proximity engine: distance-banded display state per building.

On every location update the engine recomputes each building's distance,
bearing and anchor, derives the display state from two radii, and reports the
buildings whose state changed. It is the only writer of display state; the
scene graph is a projection of the events it emits.

State per building (`DisplayState`):
- `HIDDEN`: distance >= visibility radius (exactly on the radius is out of range)
- `DETAIL`: distance <= detail radius (exactly on the radius is in range)
- `LABEL`:  everything in between

The state is re-derived from distance on every call, so any jump (e.g.
`DETAIL -> HIDDEN` or `HIDDEN -> DETAIL`) happens in a single update and a
repeated call with the same inputs emits nothing.

Threading: `update()` never blocks and must be called serially (single writer).
A second call that starts while one is in flight raises `ConcurrentUpdateError`.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from artour.catalog.loader import MalformedRecordError, parse_building
from artour.config.settings import ProximitySettings
from artour.core.anchor import AnchorTransform, anchor_from_polar
from artour.core.geo import GeoPoint, bearing_deg, distance_miles
from artour.domain.models import Building, DisplayState, RecordError, TransitionEvent

logger = logging.getLogger(__name__)


class ConcurrentUpdateError(RuntimeError):
    """Raised when `ProximityEngine.update` is entered while another call is running."""


@dataclass(frozen=True)
class ProximityThresholds:
    """Radii (miles) that band distance into display states."""

    visibility_radius_miles: float = 0.25
    detail_radius_miles: float = 0.10

    def __post_init__(self) -> None:
        if not (self.visibility_radius_miles > 0 and self.detail_radius_miles > 0):
            raise ValueError("proximity radii must be > 0")
        if self.detail_radius_miles >= self.visibility_radius_miles:
            raise ValueError("detail_radius_miles must be smaller than visibility_radius_miles")

    @classmethod
    def from_settings(cls, settings: ProximitySettings) -> "ProximityThresholds":
        return cls(
            visibility_radius_miles=settings.visibility_radius_miles,
            detail_radius_miles=settings.detail_radius_miles,
        )


def derive_state(distance: float, thresholds: ProximityThresholds) -> DisplayState:
    """Map a distance in miles onto a display state."""
    if distance >= thresholds.visibility_radius_miles:
        return DisplayState.HIDDEN
    if distance <= thresholds.detail_radius_miles:
        return DisplayState.DETAIL
    return DisplayState.LABEL


@dataclass
class TrackedBuilding:
    """A building plus the values computed on the latest update."""

    building: Building
    distance_miles: float
    bearing_deg: float
    anchor: AnchorTransform
    state: DisplayState = DisplayState.HIDDEN


@dataclass
class UpdateResult:
    """Output of one `ProximityEngine.update` call.

    Iterating the result yields the transition events in input order. `anchors`
    holds the refreshed anchor of every building processed, changed or not.
    """

    events: list[TransitionEvent] = field(default_factory=list)
    anchors: dict[str, AnchorTransform] = field(default_factory=dict)
    errors: list[RecordError] = field(default_factory=list)
    stale_heading: bool = False

    def __iter__(self) -> Iterator[TransitionEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)


class ProximityEngine:
    """Owns the tracked-building collection and every display-state transition."""

    def __init__(self, thresholds: ProximityThresholds | None = None):
        self._thresholds = thresholds or ProximityThresholds()
        self._tracked: dict[str, TrackedBuilding] = {}
        self._lock = threading.Lock()

    @property
    def thresholds(self) -> ProximityThresholds:
        return self._thresholds

    def __len__(self) -> int:
        return len(self._tracked)

    def state_of(self, building_id: str) -> DisplayState | None:
        """Current display state of a tracked building (None if never observed)."""
        tracked = self._tracked.get(building_id)
        return tracked.state if tracked is not None else None

    def update(
        self,
        user: GeoPoint,
        heading_deg: float | None,
        buildings: Sequence[Building | Any],
    ) -> UpdateResult:
        """Process one location sample against `buildings`.

        Entries may be `Building`s or raw dataset records; a record that cannot
        be parsed is reported in `errors` and the rest of the batch still runs.
        With no heading yet, nothing is processed and `stale_heading` is set.
        """
        if heading_deg is None or not math.isfinite(heading_deg):
            logger.warning("No valid heading yet (%r); skipping location update.", heading_deg)
            return UpdateResult(stale_heading=True)
        if not (math.isfinite(user.lat) and math.isfinite(user.lon)):
            raise ValueError(f"user location must be finite, got {user!r}")

        if not self._lock.acquire(blocking=False):
            raise ConcurrentUpdateError("ProximityEngine.update is single-writer; a call is already running")
        try:
            return self._update_locked(user, buildings)
        finally:
            self._lock.release()

    def _update_locked(self, user: GeoPoint, buildings: Sequence[Building | Any]) -> UpdateResult:
        result = UpdateResult()
        seen: set[str] = set()

        for index, raw in enumerate(buildings):
            try:
                building = parse_building(raw)
            except MalformedRecordError as exc:
                logger.warning("Skipping building record #%s (%s): %s", index, exc.record_id, exc.reason)
                result.errors.append(RecordError(index=index, record_id=exc.record_id, reason=exc.reason))
                continue

            if building.id in seen:
                logger.warning("Skipping duplicate building id %r at record #%s", building.id, index)
                result.errors.append(
                    RecordError(index=index, record_id=building.id, reason="duplicate id in batch")
                )
                continue
            seen.add(building.id)

            distance = distance_miles(user, building.location)
            bearing = bearing_deg(user, building.location)
            anchor = anchor_from_polar(bearing, distance)
            result.anchors[building.id] = anchor

            tracked = self._tracked.get(building.id)
            new_state = derive_state(distance, self._thresholds)

            if tracked is None:
                tracked = TrackedBuilding(
                    building=building,
                    distance_miles=distance,
                    bearing_deg=bearing,
                    anchor=anchor,
                )
                self._tracked[building.id] = tracked
            else:
                tracked.building = building
                tracked.distance_miles = distance
                tracked.bearing_deg = bearing
                tracked.anchor = anchor

            if new_state is not tracked.state:
                event = TransitionEvent(
                    building_id=building.id,
                    old_state=tracked.state,
                    new_state=new_state,
                    anchor=anchor,
                )
                logger.debug(
                    "%s: %s -> %s at %.3f mi",
                    building.id,
                    tracked.state.value,
                    new_state.value,
                    distance,
                )
                tracked.state = new_state
                result.events.append(event)

        return result
