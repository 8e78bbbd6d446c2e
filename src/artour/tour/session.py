"""
One AR tour session.

Wires the collaborators around the proximity engine the way a view controller
would: heading readings gate location samples, each location sample runs one
engine update over the dataset, the overlay projector turns the result into
renderer commands, and buildings entering `DETAIL` are handed to enrichment.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field

from artour.config.settings import Settings
from artour.core.geo import GeoPoint
from artour.domain.models import Building, RecordError
from artour.engine.proximity import ConcurrentUpdateError, ProximityEngine, ProximityThresholds, UpdateResult
from artour.enrichment.client import DetailsCallback, EnrichmentScheduler
from artour.overlay.scene import NodeCommand, OverlayProjector

logger = logging.getLogger(__name__)


@dataclass
class SessionStep:
    """What one location sample produced."""

    result: UpdateResult
    commands: list[NodeCommand] = field(default_factory=list)
    enrichments_scheduled: int = 0


class TourSession:
    def __init__(
        self,
        settings: Settings,
        buildings: list[Building],
        *,
        dataset_errors: list[RecordError] | None = None,
        enrichment: EnrichmentScheduler | None = None,
        on_details: DetailsCallback | None = None,
        thresholds: ProximityThresholds | None = None,
    ):
        self.engine = ProximityEngine(thresholds or ProximityThresholds.from_settings(settings.proximity))
        self.overlay = OverlayProjector(settings.overlay)
        self.dataset_errors = list(dataset_errors or [])
        self._buildings: list[Building] = []
        self._by_id: dict[str, Building] = {}
        for index, building in enumerate(buildings):
            if building.id in self._by_id:
                logger.warning("Dropping duplicate building id %r from session dataset", building.id)
                self.dataset_errors.append(
                    RecordError(index=index, record_id=building.id, reason="duplicate id in dataset")
                )
                continue
            self._by_id[building.id] = building
            self._buildings.append(building)
        self._lock = threading.Lock()
        self._enrichment = enrichment
        self._on_details = on_details
        self._heading: float | None = None

    @property
    def heading_deg(self) -> float | None:
        return self._heading

    @property
    def buildings(self) -> list[Building]:
        return list(self._buildings)

    def on_heading(self, heading_deg: float) -> None:
        """Record a compass heading reading (degrees)."""
        if not math.isfinite(heading_deg):
            logger.warning("Ignoring non-finite heading %r", heading_deg)
            return
        self._heading = heading_deg % 360.0

    def on_location(self, location: GeoPoint) -> SessionStep:
        """Process a location sample; a no-op until a heading has arrived.

        Engine update, overlay projection and enrichment run as one step under a
        non-blocking session lock, so the overlay never falls out of step with
        the engine. An overlapping sample raises `ConcurrentUpdateError`.
        """
        if not self._lock.acquire(blocking=False):
            raise ConcurrentUpdateError("TourSession.on_location is single-writer; a sample is already being processed")
        try:
            return self._step(location)
        finally:
            self._lock.release()

    def _step(self, location: GeoPoint) -> SessionStep:
        if self._heading is None:
            logger.debug("Dropping location sample before first heading reading.")
            return SessionStep(result=UpdateResult(stale_heading=True))

        result = self.engine.update(location, self._heading, self._buildings)
        commands = self.overlay.apply(result)
        scheduled = 0
        if self._enrichment is not None:
            scheduled = self._enrichment.schedule_for_events(result.events, self._by_id, self._on_details)
        return SessionStep(result=result, commands=commands, enrichments_scheduled=scheduled)

    def building_for_node(self, node_name: str | None) -> Building | None:
        """Hit-test helper: map a tapped node name back to its building."""
        bid = self.overlay.building_for_node(node_name)
        return self._by_id.get(bid) if bid is not None else None
